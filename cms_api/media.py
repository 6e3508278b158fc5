"""
Client for the remote media-hosting service (Cloudinary REST API).

The service stores and transforms images; this module only decides what
may be sent to it and what comes back.  ``upload_image`` is the whole
image pipeline as seen by the rest of the application:

1. reject anything that is not an allowed image type or is too large;
2. upload with a ``c_limit`` transformation so the stored image fits
   inside the configured bounding box with its aspect ratio preserved;
3. reject portrait/square results (and remove the asset just stored)
   when the policy is landscape-only;
4. return the public URL plus the handle needed to delete it later.

One ``MediaClient`` (wrapping one ``httpx.AsyncClient``) is created in the
application lifespan and handed to routers through ``get_media_client``;
tests override that dependency with an in-memory fake.
"""
import hashlib
import logging
import time
from dataclasses import dataclass

import httpx

from cms_api.config import settings
from cms_api.errors import UpstreamError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImagePolicy:
    folder: str
    allowed_types: tuple[str, ...]
    landscape_only: bool = False
    # Minimum width/height ratio; only checked when landscape_only is set.
    min_aspect_ratio: float = 1.0
    type_error: str = "Only image files are allowed (jpeg, jpg, png, gif, webp)"


ARTICLE_IMAGES = ImagePolicy(
    folder="articles",
    allowed_types=("image/jpeg", "image/jpg", "image/png", "image/webp"),
    landscape_only=True,
    type_error="Only image files allowed",
)
HERO_IMAGES = ImagePolicy(
    folder="heroes",
    allowed_types=("image/jpeg", "image/jpg", "image/png"),
    landscape_only=True,
    min_aspect_ratio=settings.HERO_MIN_ASPECT_RATIO,
    type_error="Only PNG, JPG, and JPEG files are allowed",
)
PHOTOGRAPHY_IMAGES = ImagePolicy(
    folder="photography",
    allowed_types=("image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"),
)


@dataclass(frozen=True)
class UploadedImage:
    url: str
    public_id: str
    width: int | None = None
    height: int | None = None
    format: str | None = None
    bytes: int | None = None


def check_image(data: bytes, content_type: str | None, policy: ImagePolicy) -> None:
    """Validate an upload before anything is sent to the remote service."""
    if not data:
        raise ValidationError("Image file is required")
    if (content_type or "").lower() not in policy.allowed_types:
        raise ValidationError(policy.type_error)
    if len(data) > settings.MAX_UPLOAD_BYTES:
        limit_mb = settings.MAX_UPLOAD_BYTES // (1024 * 1024)
        raise ValidationError(f"File size too large. Maximum size is {limit_mb}MB.")


def check_orientation(image: UploadedImage, policy: ImagePolicy) -> None:
    if not policy.landscape_only:
        return
    if not image.width or not image.height or image.height >= image.width:
        raise ValidationError(
            "Only horizontal images are allowed (width must be greater than height)"
        )
    ratio = image.width / image.height
    if ratio < policy.min_aspect_ratio:
        raise ValidationError(
            "Only proper landscape/horizontal images are allowed",
            errors=[{
                "field": "img",
                "message": (
                    f"Aspect ratio {ratio:.2f} is below the required {policy.min_aspect_ratio}"
                ),
            }],
        )


class MediaClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        cloud_name: str,
        api_key: str,
        api_secret: str,
        max_width: int = 1920,
        max_height: int = 1080,
    ) -> None:
        self._http = http
        self._cloud_name = cloud_name
        self._api_key = api_key
        self._api_secret = api_secret
        self._max_width = max_width
        self._max_height = max_height

    @classmethod
    def from_settings(cls) -> "MediaClient":
        http = httpx.AsyncClient(
            base_url=settings.MEDIA_BASE_URL,
            timeout=settings.MEDIA_TIMEOUT_SECONDS,
        )
        return cls(
            http,
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            max_width=settings.IMAGE_MAX_WIDTH,
            max_height=settings.IMAGE_MAX_HEIGHT,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Request signing
    # ------------------------------------------------------------------

    def _signed(self, params: dict) -> dict:
        params = {**params, "timestamp": str(int(time.time()))}
        to_sign = "&".join(f"{key}={params[key]}" for key in sorted(params))
        signature = hashlib.sha1((to_sign + self._api_secret).encode()).hexdigest()
        return {**params, "api_key": self._api_key, "signature": signature}

    async def _post(self, action: str, data: dict, files: dict | None = None) -> dict:
        url = f"/{self._cloud_name}/image/{action}"
        try:
            response = await self._http.post(url, data=data, files=files)
        except httpx.HTTPError as exc:
            raise UpstreamError("Image service unavailable") from exc

        if response.status_code >= 400:
            try:
                detail = response.json().get("error", {}).get("message", response.text)
            except ValueError:
                detail = response.text
            logger.warning("Media %s failed (%d): %s", action, response.status_code, detail)
            if response.status_code == 400:
                raise ValidationError(f"Image rejected by media service: {detail}")
            raise UpstreamError("Image processing failed")
        return response.json()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def upload_image(self, data: bytes, content_type: str | None, policy: ImagePolicy) -> UploadedImage:
        check_image(data, content_type, policy)

        params = self._signed({
            "folder": policy.folder,
            "transformation": f"c_limit,w_{self._max_width},h_{self._max_height}/q_auto:good",
        })
        payload = await self._post(
            "upload", params, files={"file": ("upload", data, content_type)}
        )
        try:
            image = UploadedImage(
                url=payload["secure_url"],
                public_id=payload["public_id"],
                width=payload.get("width"),
                height=payload.get("height"),
                format=payload.get("format"),
                bytes=payload.get("bytes"),
            )
        except KeyError as exc:
            raise UpstreamError("Image processing failed") from exc

        try:
            check_orientation(image, policy)
        except ValidationError:
            await delete_quietly(self, image.public_id)
            raise

        logger.info("Uploaded %s (%sx%s) to %s", image.public_id, image.width, image.height, policy.folder)
        return image

    async def delete_image(self, public_id: str) -> None:
        await self._post("destroy", self._signed({"public_id": public_id}))


async def delete_quietly(media, public_id: str | None) -> None:
    """Remove a remote asset, logging instead of raising on failure."""
    if not public_id:
        return
    try:
        await media.delete_image(public_id)
    except Exception:
        logger.warning("Could not delete remote image %s", public_id, exc_info=True)
