# idverify/infrastructure/similarity/rekognition_adapter.py
import io
import logging
from typing import List

from PIL import Image

from ...domain.value_objects import ImageRef
from ..aws import AWS_ERRORS, aws_client, collaborator_error, error_code

logger = logging.getLogger("idverify.verify")

_JPEG_MAGIC = b"\xff\xd8\xff"
_PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


def to_supported_bytes(data: bytes) -> bytes:
    """CompareFaces only takes JPEG/PNG; anything else is re-encoded to JPEG."""
    if data.startswith(_JPEG_MAGIC) or data.startswith(_PNG_MAGIC):
        return data
    img = Image.open(io.BytesIO(data)).convert("RGB")
    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=90)
    return buf.getvalue()


class RekognitionFaceComparer:
    def __init__(self, bucket: str, client=None):
        self.bucket = bucket
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = aws_client("rekognition")
        return self._client

    def _image(self, ref: ImageRef) -> dict:
        if ref.is_inline:
            return {"Bytes": to_supported_bytes(ref.data)}
        return {"S3Object": {"Bucket": ref.bucket or self.bucket, "Name": ref.key}}

    def compare(self, source: ImageRef, target: ImageRef, similarity_threshold: float) -> List[float]:
        try:
            resp = self.client.compare_faces(
                SourceImage=self._image(source),
                TargetImage=self._image(target),
                SimilarityThreshold=float(similarity_threshold),
            )
        except AWS_ERRORS as ex:
            # No face in one of the images is a negative comparison, not an outage.
            if error_code(ex) == "InvalidParameterException":
                logger.info({"event": "rek_compare_no_face", "error": str(ex)})
                return []
            logger.info({"event": "rek_compare_error", "error": str(ex)})
            raise collaborator_error("face comparison", ex) from ex
        except OSError as ex:
            # Pillow could not decode the inline image.
            raise collaborator_error("face comparison", ex) from ex

        similarities = [float(m["Similarity"]) for m in resp.get("FaceMatches", []) or [] if "Similarity" in m]
        logger.info({
            "event": "rek_compare",
            "matches": len(similarities),
            "unmatched": len(resp.get("UnmatchedFaces", []) or []),
            "threshold": similarity_threshold,
        })
        return similarities
