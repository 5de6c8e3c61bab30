"""
Request orchestration: throttle, fetch, decode, run the manipulator chain,
negotiate the output format and encode.
"""
from typing import Iterable, Mapping, NamedTuple, Optional

from loguru import logger

from image_alchemy import engine
from image_alchemy.collaborators import BanCallback, Fetcher, RequestContext, Throttler
from image_alchemy.config import GIF_EXTENSION, GIF_MIME_TYPE, ServiceConfig
from image_alchemy.engine import AccessMode, BandFormat, ImageHandle, ops
from image_alchemy.exceptions import EngineFailure, ImageNotReadable, RateExceeded
from image_alchemy.logger import LoguruHandler, create_logger
from image_alchemy.manipulators import Manipulator, ManipulatorKind, default_manipulators
from image_alchemy.params import resolve_encoding_options
from image_alchemy.pipeline.request import ManipulationRequest
from image_alchemy.pipeline.state import PipelineState

# Kinds whose has_alpha report replaces the pipeline flag
ALPHA_REPORTING = frozenset({ManipulatorKind.SIZE, ManipulatorKind.SHAPE})

# Kinds whose is_premultiplied report replaces the pipeline flag
PREMULTIPLY_REPORTING = frozenset({
    ManipulatorKind.SIZE,
    ManipulatorKind.SHARPEN,
    ManipulatorKind.BLUR,
    ManipulatorKind.BACKGROUND,
})

# Orientations that swap the axes need the whole frame in memory
TRANSPOSING_ORIENTATIONS = ("90", "270")


class ProcessedImage(NamedTuple):
    buffer: bytes
    mime_type: str
    extension: str


class ImageProcessor:
    """
    Runs one manipulation request from URL to encoded bytes.

    Holds only its collaborators and configuration; every request gets its
    own PipelineState, so one instance can serve concurrent requests.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        throttler: Optional[Throttler] = None,
        manipulators: Optional[Iterable[Manipulator]] = None,
        config: Optional[ServiceConfig] = None,
        gif_encoder=None,
        ban: Optional[BanCallback] = None,
    ):
        """
        Args:
            fetcher: Makes a URL available as a local file
            throttler: Optional rate limiter consulted before any work
            manipulators: Chain to run; defaults to the full fixed-order chain
            config: Service configuration; defaults when None
            gif_encoder: Optional GIF encoder (see ``detect_gif_encoder``)
            ban: Invoked once when the throttler bans an identity; logs by default
        """
        self.fetcher = fetcher
        self.throttler = throttler
        self.manipulators = list(manipulators) if manipulators is not None else default_manipulators()
        self.config = config or ServiceConfig()
        self.gif_encoder = gif_encoder
        self.ban = ban or self.default_ban

    def default_ban(self, identity: str, ban_time: int) -> None:
        logger.warning(self.config.ban_log_template.format(identity=identity, ban_time=ban_time))

    def run(
        self,
        url: str,
        extension: str,
        params: Mapping,
        context: Optional[RequestContext] = None,
    ) -> ProcessedImage:
        """
        Process ``url`` with ``params``.

        Args:
            url: Source resource
            extension: Extension of the source, used when no output is requested
            params: Request parameters (raw strings)
            context: Caller-supplied request facts (client identity, request id)

        Raises:
            RateExceeded: the throttler rejected the client identity
            ImageNotReadable: the fetched resource could not be decoded
            EngineFailure: a pixel operation or the encoder failed
        """
        request = ManipulationRequest.of(params)
        log = create_logger(context.request_id if context else None)
        log.debug(f"Processing {url} ({extension}) with {dict(request)}")

        self.check_throttle(context)

        with self.fetcher.fetch(url) as local:
            access = self.resolve_access_mode(request)
            log.debug(f"Access mode: {access.value}")

            try:
                image = engine.load(local.path, access)
            except EngineFailure as e:
                log.warning(f"Image not readable. Message: {e} URL: {url}")
                raise ImageNotReadable(str(e)) from e

            state = PipelineState.from_image(image, access)
            image = self.run_chain(image, request, state)

            image = self.restore_straight_alpha(image, state)

            return self.encode(image, extension, request, state, log)

    def check_throttle(self, context: Optional[RequestContext]) -> None:
        if self.throttler is None:
            return

        identity = (context.client_ip if context else None) or self.config.default_identity
        if self.throttler.is_exceeded(identity, self._ban_once()):
            raise RateExceeded(identity)

    def _ban_once(self) -> BanCallback:
        """Wrap the ban callback so a single check cannot run it twice"""
        fired = []

        def on_exceeded(identity: str, ban_time: int) -> None:
            if fired:
                return
            fired.append(True)
            self.ban(identity, ban_time)

        return on_exceeded

    @staticmethod
    def resolve_access_mode(request: ManipulationRequest) -> AccessMode:
        """Random access for operations that read around the current pixel or transpose"""
        if (
            request.get("trim") is not None
            or request.get("or") in TRANSPOSING_ORIENTATIONS
            or request.get("blur") is not None
            or request.get("sharp") is not None
        ):
            return AccessMode.RANDOM
        return AccessMode.SEQUENTIAL

    def run_chain(self, image: ImageHandle, request: ManipulationRequest, state: PipelineState) -> ImageHandle:
        """Apply every manipulator in order, folding trusted reports into ``state``"""
        for manipulator in self.manipulators:
            result = manipulator.apply(image, request, state)
            image = result.image

            if manipulator.kind in ALPHA_REPORTING and result.has_alpha is not None:
                state.has_alpha = result.has_alpha
            if manipulator.kind in PREMULTIPLY_REPORTING and result.is_premultiplied is not None:
                state.is_premultiplied = result.is_premultiplied

        return image

    @staticmethod
    def restore_straight_alpha(image: ImageHandle, state: PipelineState) -> ImageHandle:
        """Undo premultiplication left by the chain and return to the source bit depth"""
        if not state.is_premultiplied:
            return image
        image = ops.unpremultiply(image)
        return ops.cast(image, BandFormat.USHORT if state.is_16bit else BandFormat.UCHAR)

    def resolve_extension(self, extension: str, request: ManipulationRequest, has_alpha: bool) -> str:
        """
        Output extension: an allowed ``output`` wins; otherwise alpha forces
        an alpha-capable format, and anything not allowed falls back to the
        lossy default.
        """
        allowed = self.config.allowed_types
        output = request.get("output")

        if output in allowed:
            return output
        if has_alpha and extension not in self.config.alpha_capable:
            return self.config.alpha_fallback
        if extension not in allowed:
            return self.config.lossy_fallback
        return extension

    def encode(
        self,
        image: ImageHandle,
        extension: str,
        request: ManipulationRequest,
        state: PipelineState,
        log: Optional[LoguruHandler] = None,
    ) -> ProcessedImage:
        log = log or create_logger()
        target = self.resolve_extension(extension, request, state.has_alpha)
        if target != extension:
            log.debug(f"Output format {extension} -> {target}")

        options = resolve_encoding_options(target, request)
        buffer = engine.write_to_buffer(image, target, options)
        result = ProcessedImage(buffer, self.config.mime_type(target), target)

        if self.wants_gif(extension, request):
            return self.reencode_gif(result, request, state.has_alpha, log)
        return result

    def wants_gif(self, extension: str, request: ManipulationRequest) -> bool:
        if self.gif_encoder is None:
            return False
        # Only needed while the engine itself cannot write GIF
        if engine.can_write(GIF_EXTENSION):
            return False
        output = request.get("output")
        if output is not None:
            return output == GIF_EXTENSION
        return extension == GIF_EXTENSION

    def reencode_gif(
        self,
        primary: ProcessedImage,
        request: ManipulationRequest,
        has_alpha: bool,
        log: Optional[LoguruHandler] = None,
    ) -> ProcessedImage:
        """Best effort: any failure keeps the primary buffer"""
        try:
            raster = self.gif_encoder.decode(primary.buffer)
            buffer = self.gif_encoder.encode(raster, interlace="il" in request, has_alpha=has_alpha)
        except Exception as e:
            (log or create_logger()).debug(f"GIF re-encoding failed, keeping {primary.extension}: {e}")
            return primary

        return ProcessedImage(buffer, GIF_MIME_TYPE, GIF_EXTENSION)
