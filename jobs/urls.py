from django.urls import path
from . import views

app_name = "jobs"

urlpatterns = [
    path("update-status/", views.update_status, name="update_status"),
]
