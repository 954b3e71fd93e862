# idverify/urls.py
from django.urls import path
from idverify.presentation.api import (
    VerificationActionAPIView,
    VerificationStatusAPIView,
)

app_name = "idverify"

urlpatterns = [
    path('verify', VerificationActionAPIView.as_view(), name='verify'),
    path('verify/<str:user_id>', VerificationStatusAPIView.as_view(), name='verify-status'),
]
