from django.contrib import admin
from .models import User

@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ("id", "uid", "username", "name", "role", "status", "is_active")
    list_filter = ("role", "status")
    search_fields = ("uid", "username", "name")
