from django.urls import path
from . import views

app_name = "support"

urlpatterns = [
    path("support/", views.index, name="index"),
    path("admin/settings/", views.admin_settings, name="admin_settings"),
]
