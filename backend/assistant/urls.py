# assistant/urls.py

from django.urls import path

from assistant.views import (
    ClassifyView,
    SuggestionActionView,
    SuggestionDetailView,
    SuggestionListView,
)

app_name = "assistant"

urlpatterns = [
    path("classify/", ClassifyView.as_view(), name="classify"),
    path("suggestions/", SuggestionListView.as_view(), name="suggestion-list"),
    path("suggestions/<int:pk>/", SuggestionDetailView.as_view(), name="suggestion-detail"),
    path("suggestions/<int:pk>/approve/", SuggestionActionView.as_view(action="approve"), name="suggestion-approve"),
    path("suggestions/<int:pk>/post/", SuggestionActionView.as_view(action="post"), name="suggestion-post"),
    path("suggestions/<int:pk>/accept/", SuggestionActionView.as_view(action="accept"), name="suggestion-accept"),
    path("suggestions/<int:pk>/reject/", SuggestionActionView.as_view(action="reject"), name="suggestion-reject"),
]
