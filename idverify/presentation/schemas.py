# idverify/presentation/schemas.py
from rest_framework import serializers

from idverify.application.requests import ACTIONS

# ---------- Action (POST) ----------
class VerificationActionRequestSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=sorted(ACTIONS), help_text="Action to run.")
    userId = serializers.CharField(help_text="Stable user identifier (all actions).")
    documentKey = serializers.CharField(required=False, help_text="process_document: key of the uploaded document (users/<userId>/...).")
    sessionId = serializers.CharField(required=False, help_text="verify_liveness: liveness session to verify.")
    sourceImageKey = serializers.CharField(required=False, help_text="compare_faces: key of the image to compare (users/<userId>/... or liveness/<userId>/...).")

class ProcessDocumentResponseSerializer(serializers.Serializer):
    status = serializers.CharField()
    action = serializers.CharField()
    documentKey = serializers.CharField()
    isValid = serializers.BooleanField()
    errors = serializers.ListField(child=serializers.CharField())
    documentType = serializers.ChoiceField(choices=["PASSPORT", "DRIVER_LICENSE", "NATIONAL_ID", "UNKNOWN"])
    fields = serializers.DictField(child=serializers.CharField())

class StartLivenessSessionResponseSerializer(serializers.Serializer):
    status = serializers.CharField()
    action = serializers.CharField()
    sessionId = serializers.CharField()
    sessionToken = serializers.CharField()
    state = serializers.CharField()

class VerifyLivenessResponseSerializer(serializers.Serializer):
    status = serializers.CharField()
    action = serializers.CharField()
    isLive = serializers.BooleanField()
    confidence = serializers.FloatField(allow_null=True)
    faceMatch = serializers.BooleanField()
    similarity = serializers.FloatField(allow_null=True)
    verificationCompleted = serializers.BooleanField()
    sessionStatus = serializers.CharField(allow_null=True)

class CompareFacesResponseSerializer(serializers.Serializer):
    status = serializers.CharField()
    action = serializers.CharField()
    matched = serializers.BooleanField()
    similarity = serializers.FloatField()

class ErrorResponseSerializer(serializers.Serializer):
    status = serializers.CharField()
    action = serializers.CharField(allow_null=True)
    error = serializers.CharField()
    message = serializers.CharField()

# ---------- Status (GET) ----------
class VerificationRecordSerializer(serializers.Serializer):
    userId = serializers.CharField()
    documentKey = serializers.CharField(required=False)
    extractedFields = serializers.DictField(child=serializers.CharField(), required=False)
    documentType = serializers.CharField(required=False)
    documentValid = serializers.BooleanField(required=False)
    validationErrors = serializers.ListField(child=serializers.CharField(), required=False)
    livenessConfidence = serializers.FloatField(required=False)
    livenessPassed = serializers.BooleanField(required=False)
    faceSimilarity = serializers.FloatField(required=False)
    faceMatched = serializers.BooleanField(required=False)
    verificationCompleted = serializers.BooleanField()
    createdAt = serializers.CharField(required=False)
    updatedAt = serializers.CharField(required=False)

class VerificationStatusResponseSerializer(serializers.Serializer):
    status = serializers.CharField()
    state = serializers.CharField()
    outcome = serializers.CharField(allow_null=True)
    record = VerificationRecordSerializer()
