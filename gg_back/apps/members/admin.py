from django.contrib import admin
from .models import SimpleMember


@admin.register(SimpleMember)
class SimpleMemberAdmin(admin.ModelAdmin):
    list_display = ("display_name", "email", "joined_at", "is_active", "receive_notifications")
    list_filter = ("is_active", "receive_notifications")
    search_fields = ("email", "display_name")
