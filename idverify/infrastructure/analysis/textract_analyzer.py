# idverify/infrastructure/analysis/textract_analyzer.py
from typing import List, Optional
import logging

from ...domain.value_objects import DetectedFace, DocumentAnalysis, FaceQuality, ImageRef
from ..aws import AWS_ERRORS, aws_client, collaborator_error

logger = logging.getLogger("idverify.verify")


def extract_lines(blocks: List[dict]) -> List[str]:
    """Only LINE blocks, in document order."""
    return [b.get("Text", "") for b in blocks or [] if b.get("BlockType") == "LINE"]


def _to_face(detail: dict) -> DetectedFace:
    quality = detail.get("Quality") or {}

    def _opt(key: str) -> Optional[float]:
        v = quality.get(key)
        return float(v) if v is not None else None

    return DetectedFace(
        confidence=float(detail.get("Confidence", 0.0)),
        quality=FaceQuality(brightness=_opt("Brightness"), sharpness=_opt("Sharpness")),
        bounding_box=detail.get("BoundingBox"),
    )


class TextractDocumentAnalyzer:
    """
    Document analysis over an image stored in S3:
      - Textract AnalyzeDocument (FORMS) for the text lines
      - Rekognition DetectFaces (ALL attributes) for the portrait(s) and their quality
    """
    def __init__(self, bucket: str, textract_client=None, rekognition_client=None, min_face_confidence: float = 0.0):
        self.bucket = bucket
        self._textract = textract_client
        self._rekognition = rekognition_client
        self.min_face_confidence = float(min_face_confidence)

    @property
    def textract(self):
        if self._textract is None:
            self._textract = aws_client("textract")
        return self._textract

    @property
    def rekognition(self):
        if self._rekognition is None:
            self._rekognition = aws_client("rekognition")
        return self._rekognition

    def _s3_object(self, document: ImageRef) -> dict:
        return {"Bucket": document.bucket or self.bucket, "Name": document.key}

    def analyze(self, document: ImageRef) -> DocumentAnalysis:
        s3_object = self._s3_object(document)

        try:
            text_resp = self.textract.analyze_document(
                Document={"S3Object": s3_object},
                FeatureTypes=["FORMS"],
            )
        except AWS_ERRORS as ex:
            logger.info({"event": "textract_error", "key": document.key, "error": str(ex)})
            raise collaborator_error("document analysis", ex) from ex

        try:
            face_resp = self.rekognition.detect_faces(Image={"S3Object": s3_object}, Attributes=["ALL"])
        except AWS_ERRORS as ex:
            logger.info({"event": "rek_face_detect_error", "key": document.key, "error": str(ex)})
            raise collaborator_error("face detection", ex) from ex

        lines = extract_lines(text_resp.get("Blocks", []))
        details = face_resp.get("FaceDetails", []) or []

        faces = []
        for i, detail in enumerate(details):
            face = _to_face(detail)
            if face.confidence < self.min_face_confidence:
                logger.info({"event": "face_discarded", "index": i, "confidence": face.confidence,
                             "min_confidence": self.min_face_confidence})
                continue
            faces.append(face)

        logger.info({
            "event": "document_analyzed",
            "key": document.key,
            "lines": len(lines),
            "faces_total": len(details),
            "faces_kept": len(faces),
        })
        return DocumentAnalysis(lines=lines, faces=faces)
