from django.urls import include, path

urlpatterns = [
    path("", include("tow_planner.urls")),
]
