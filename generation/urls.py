"""
Generation app URL configuration
"""
from django.urls import path

from .views import ChatView, CoverLetterView, ExperienceView, KeywordsView

urlpatterns = [
    path('keywords', KeywordsView.as_view(), name='generate-keywords'),
    path('coverletter', CoverLetterView.as_view(), name='generate-cover-letter'),
    path('experience', ExperienceView.as_view(), name='generate-experience'),
    path('chat', ChatView.as_view(), name='chat'),
]
