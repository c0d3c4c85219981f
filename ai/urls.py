from django.urls import path
from ai.views import ConfigView

urlpatterns = [
    path('config', ConfigView.as_view()),
]
