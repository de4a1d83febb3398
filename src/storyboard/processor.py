"""Generation queue: drives scenes through the provider chain one at a time."""

import logging
from dataclasses import dataclass, field
from functools import partial
from typing import Callable, List, Optional, Sequence

from .errors import BatchInProgressError, GenerationError
from .models import Scene, Storyboard
from .prompts import build_prompt
from .rate_limit import RateLimiter
from .services.chain import ProviderChain
from .storage import ImageStore

logger = logging.getLogger(__name__)

SUCCESS = {"kind": "success"}


@dataclass
class BatchResult:
    """Outcome of one generation batch."""

    retry_mode: bool = False
    processed: List[int] = field(default_factory=list)
    succeeded: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)
    stopped: bool = False
    backoffs: int = 0
    backoff_seconds: float = 0.0


class StopToken:
    """Cooperative cancellation flag, checked between scenes only."""

    def __init__(self) -> None:
        self._requested = False

    @property
    def requested(self) -> bool:
        return self._requested

    def request(self) -> None:
        self._requested = True


class QueueProcessor:
    """Sequential image generation over a storyboard's scenes.

    The processor is the only writer of scene status fields. Scenes are
    generated strictly one after another with a rate-limit pause between
    them; a failing scene is marked ERROR and the batch moves on.
    """

    def __init__(
        self,
        storyboard: Storyboard,
        chain: ProviderChain,
        api_key: str,
        rate_limiter: RateLimiter,
        store: Optional[ImageStore] = None,
        on_update: Optional[Callable[[Scene], None]] = None,
    ) -> None:
        """Initialize the processor.

        Args:
            storyboard: Storyboard whose scenes are generated in place.
            chain: Provider chain used for every scene.
            api_key: API key passed to the providers.
            rate_limiter: Pause applied between two scenes.
            store: Optional image store; when set, image_url is the saved
                file path instead of the provider's data URL.
            on_update: Called with a copy of a scene after each status change.
        """
        self._storyboard = storyboard
        self._chain = chain
        self._api_key = api_key
        self._rate_limiter = rate_limiter
        self._store = store
        self._on_update = on_update
        self._stop: Optional[StopToken] = None

    @property
    def storyboard(self) -> Storyboard:
        return self._storyboard

    @property
    def is_running(self) -> bool:
        return self._stop is not None

    @property
    def stop_requested(self) -> bool:
        return self._stop is not None and self._stop.requested

    def snapshot(self) -> List[Scene]:
        return self._storyboard.snapshot()

    def request_stop(self) -> None:
        """Ask the running batch to stop after the current scene."""
        if self._stop is None:
            logger.debug("Stop requested but no batch is running")
            return
        self._stop.request()
        logger.info("Stop requested. The batch will pause after the current scene.")

    async def retry_failed(self) -> BatchResult:
        """Regenerate every ERROR scene with the simplified retry prompt."""
        failed = self._storyboard.failed_scenes()
        if not failed:
            logger.info("No failed scenes to retry", extra=SUCCESS)
        else:
            logger.warning(f"Retrying {len(failed)} failed scene(s) with simplified prompts")
        return await self.start_generation(failed, retry_mode=True)

    async def retry_one(self, scene_id: int) -> BatchResult:
        """Regenerate a single scene in retry mode, whatever its status.

        Raises:
            KeyError: If the scene does not exist.
        """
        scene = self._storyboard.get(scene_id)
        return await self.start_generation([scene], retry_mode=True)

    async def start_generation(
        self,
        targets: Optional[Sequence[Scene]] = None,
        retry_mode: bool = False,
    ) -> BatchResult:
        """Generate images for the targets, in order.

        Args:
            targets: Scenes to process. None applies the storyboard's
                selection policy (explicit selection, else IDLE/ERROR scenes).
            retry_mode: Mark scenes RETRYING and simplify their prompts.

        Returns:
            BatchResult describing what was processed.

        Raises:
            BatchInProgressError: If another batch is still running.
        """
        if self.is_running:
            raise BatchInProgressError("A generation batch is already running")

        if targets is None:
            targets = self._storyboard.select_targets()
        # Always work on the storyboard's own scene objects
        scenes = [self._storyboard.get(target.id) for target in targets]

        result = BatchResult(retry_mode=retry_mode)
        if not scenes:
            logger.warning("Nothing to generate (no pending, failed or selected scenes)")
            return result

        stop = StopToken()
        self._stop = stop
        total = len(scenes)
        logger.info(
            f"Starting generation of {total} scene(s) "
            f"(providers: {' -> '.join(p.name for p in self._chain.providers)})"
        )

        try:
            for i, scene in enumerate(scenes):
                if stop.requested:
                    break

                await self._process_scene(scene, retry_mode, result)

                if i < total - 1 and not stop.requested:
                    await self._rate_limiter.wait()
        finally:
            self._stop = None

        result.stopped = stop.requested and len(result.processed) < total
        if result.stopped:
            logger.warning(
                f"Paused after {len(result.processed)}/{total} scene(s). "
                "Run generation again to resume."
            )
        else:
            logger.info(
                f"Generation finished: {len(result.succeeded)} succeeded, "
                f"{len(result.failed)} failed"
            )
        return result

    async def _process_scene(
        self,
        scene: Scene,
        retry_mode: bool,
        result: BatchResult,
    ) -> None:
        scene.mark_in_progress(retry_mode)
        self._notify(scene)
        logger.info(f"Generating scene #{scene.id}...")

        prompt = build_prompt(scene, retry_mode)
        image_url: Optional[str] = None
        error_msg: Optional[str] = None

        try:
            image_url = await self._chain.generate(
                self._api_key,
                prompt,
                on_retry=partial(self._record_backoff, scene, result),
            )
            if self._store is not None:
                image_url = self._store.save(scene.id, image_url)
        except GenerationError as e:
            error_msg = str(e)
        except Exception as e:
            logger.exception(f"Unexpected failure on scene #{scene.id}")
            error_msg = f"API call failed: {e}"

        if retry_mode:
            scene.retry_count += 1

        if error_msg is None:
            scene.mark_success(image_url)
            result.succeeded.append(scene.id)
            logger.info(f"Scene #{scene.id} generated", extra=SUCCESS)
        else:
            scene.mark_error(error_msg)
            result.failed.append(scene.id)
            logger.error(f"Scene #{scene.id} failed: {error_msg}")

        result.processed.append(scene.id)
        self._notify(scene)

    def _record_backoff(
        self,
        scene: Scene,
        result: BatchResult,
        attempt: int,
        delay: float,
        error: BaseException,
    ) -> None:
        result.backoffs += 1
        result.backoff_seconds += delay
        logger.debug(f"Scene #{scene.id}: attempt {attempt} backing off {delay:.0f}s")

    def _notify(self, scene: Scene) -> None:
        if self._on_update is not None:
            self._on_update(scene.model_copy(deep=True))
