from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("django-admin/", admin.site.urls),
    path("django-rq/", include("django_rq.urls")),
    path("accounts/", include("allauth.urls")),
    # login, signup, lifecycle actions, admin management
    path("", include("accounts.urls")),
    # student area, parent area, admin student management
    path("", include("students.urls")),
    path("api/cron/", include("jobs.urls")),
    path("", include("support.urls")),
]

handler404 = "accounts.views.not_found"
handler500 = "accounts.views.server_error"
