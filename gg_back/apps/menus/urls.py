from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import MenuHierarchyView, MenuItemViewSet, PageViewSet

app_name = 'menus'

router = DefaultRouter()
# 관리자 메뉴 관리
router.register(r'items', MenuItemViewSet, basename='menu-item')
router.register(r'pages', PageViewSet, basename='menu-page')

urlpatterns = [
    # 메뉴 트리 (공개)
    path('hierarchy/', MenuHierarchyView.as_view(), name='menu-hierarchy'),
    path('', include(router.urls)),
]

# =============================================================================
# 생성된 URL 패턴:
# =============================================================================
# GET    /api/menus/hierarchy/?menu_type=navigation  - 메뉴 트리
# GET    /api/menus/items/?menu_type=&parent=        - 메뉴 항목 목록 (관리자)
# POST   /api/menus/items/                           - 메뉴 항목 생성 (관리자)
# PATCH  /api/menus/items/{id}/                      - 메뉴 항목 수정 (관리자)
# DELETE /api/menus/items/{id}/                      - 메뉴 항목 삭제 (관리자, 하위 메뉴 포함)
# GET    /api/menus/pages/                           - 연결 페이지 목록 (관리자)
# =============================================================================
