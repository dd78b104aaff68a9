from django.contrib import admin
from .models import MenuItem, Page


# Admin 등록
@admin.register(MenuItem)
class MenuItemAdmin(admin.ModelAdmin):
    list_display = ("name", "menu_type", "parent", "sort_order", "depth", "is_visible")
    list_filter = ("menu_type", "is_visible")
    search_fields = ("name", "href")


@admin.register(Page)
class PageAdmin(admin.ModelAdmin):
    list_display = ("title", "slug", "is_published")
    prepopulated_fields = {"slug": ("title",)}
