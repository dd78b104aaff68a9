from django.urls import path
from .views import JoinView, VerifyView

app_name = 'members'

urlpatterns = [
    path('join/', JoinView.as_view(), name='member-join'),
    path('verify/', VerifyView.as_view(), name='member-verify'),
]
