from django.db import models


class SystemSetting(models.Model):
    KEY_CHOICES = [("support_email", "Support email"), ("support_phone", "Support phone")]
    key = models.CharField(max_length=64, unique=True, choices=KEY_CHOICES)
    value = models.CharField(max_length=255, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.key}={self.value}"
