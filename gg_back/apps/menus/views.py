from asgiref.sync import async_to_sync
from drf_spectacular.utils import extend_schema, OpenApiParameter
from rest_framework import viewsets
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from utils.exceptions import ExternalSystemException
from .hierarchy import MenuHierarchy
from .models import MenuItem, Page
from .serializers import MenuHierarchyResponseSerializer, MenuItemSerializer, PageSerializer


# 메뉴 트리 API (공개)
class MenuHierarchyView(APIView):
    permission_classes = [AllowAny]

    @extend_schema(
        summary="메뉴 트리 조회",
        description="menu_type 의 표시 메뉴를 sort_order 순 트리로 반환합니다.",
        parameters=[
            OpenApiParameter(name='menu_type', description='메뉴 타입 (기본값 navigation)', type=str),
        ],
        responses=MenuHierarchyResponseSerializer,
    )
    def get(self, request):
        menu_type = request.query_params.get("menu_type") or "navigation"

        hierarchy = MenuHierarchy(menu_type=menu_type)
        menu_tree, error = async_to_sync(hierarchy.fetch)()

        if error:
            raise ExternalSystemException(message=error)

        return Response({
            "menus": menu_tree
        })


# 관리자 메뉴 관리 API
class MenuItemViewSet(viewsets.ModelViewSet):
    """
    메뉴 항목 CRUD ViewSet

    생성 시 sort_order 미지정이면 형제 중 마지막 순서로, depth 는 부모 기준으로 계산합니다.
    """
    permission_classes = [IsAdminUser]
    serializer_class = MenuItemSerializer
    filterset_fields = ["menu_type", "parent", "is_visible"]

    def get_queryset(self):
        return MenuItem.objects.select_related("page").order_by("menu_type", "depth", "sort_order")


class PageViewSet(viewsets.ModelViewSet):
    """메뉴 연결용 페이지 관리"""
    permission_classes = [IsAdminUser]
    serializer_class = PageSerializer
    queryset = Page.objects.all()
    filterset_fields = ["is_published"]
