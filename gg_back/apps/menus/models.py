import uuid

from django.db import models

# Menu 모델 설계 (메뉴 + 연결 페이지)


# 메뉴에서 연결하는 페이지 (슬러그/제목만 사용)
class Page(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    title = models.CharField(max_length=200)
    slug = models.SlugField(max_length=200, unique=True)
    is_published = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'pages'
        ordering = ['title']

    def __str__(self):
        return self.title


# 메뉴 기본 정보 (href, icon, parent-child 구조)
class MenuItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    menu_type = models.CharField(max_length=50, default='navigation', db_index=True)  # 'navigation', 'footer' 등
    name = models.CharField(max_length=100)
    href = models.CharField(max_length=500, blank=True, default='')
    parent = models.ForeignKey("self", related_name="children", on_delete=models.CASCADE, blank=True, null=True)
    sort_order = models.IntegerField(default=0)
    depth = models.IntegerField(default=0)  # 표시용, 트리 구성에는 사용하지 않음
    icon_name = models.CharField(max_length=50, blank=True, null=True)
    description = models.TextField(blank=True, null=True)
    target_blank = models.BooleanField(default=False)
    page = models.ForeignKey(Page, related_name="menu_items", on_delete=models.SET_NULL, blank=True, null=True)
    is_visible = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'menu_items'
        ordering = ['menu_type', 'depth', 'sort_order']

    def __str__(self):
        return f"{self.menu_type}: {self.name}"
