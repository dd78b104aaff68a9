from rest_framework import serializers

from .models import MenuItem, Page
from .services import get_depth_for_parent, get_next_sort_order, is_descendant, refresh_subtree


# 트리 노드 직렬화 (문서화용, 실제 응답은 build_menu_tree 결과 dict)
class MenuNodeSerializer(serializers.Serializer):
    id = serializers.CharField()
    name = serializers.CharField()
    href = serializers.CharField()
    parent_id = serializers.CharField(allow_null=True)
    sort_order = serializers.IntegerField()
    depth = serializers.IntegerField()
    icon_name = serializers.CharField(allow_null=True)
    description = serializers.CharField(allow_null=True)
    target_blank = serializers.BooleanField()
    page_id = serializers.CharField(allow_null=True)
    page_title = serializers.CharField(allow_null=True)
    page_slug = serializers.CharField(allow_null=True)
    children = serializers.SerializerMethodField()

    def get_children(self, obj):
        return MenuNodeSerializer(obj["children"], many=True).data


class MenuHierarchyResponseSerializer(serializers.Serializer):
    menus = MenuNodeSerializer(many=True)


class PageSerializer(serializers.ModelSerializer):
    class Meta:
        model = Page
        fields = ["id", "title", "slug", "is_published"]


# 관리자 메뉴 CRUD 직렬화
class MenuItemSerializer(serializers.ModelSerializer):
    page_title = serializers.SerializerMethodField()
    page_slug = serializers.SerializerMethodField()

    class Meta:
        model = MenuItem
        fields = [
            "id",
            "menu_type",
            "name",
            "href",
            "parent",
            "sort_order",
            "depth",
            "icon_name",
            "description",
            "target_blank",
            "page",
            "page_title",
            "page_slug",
            "is_visible",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "depth", "created_at", "updated_at"]
        extra_kwargs = {
            "sort_order": {"required": False},
        }

    def get_page_title(self, obj):
        return obj.page.title if obj.page else None

    def get_page_slug(self, obj):
        return obj.page.slug if obj.page else None

    def validate(self, attrs):
        instance = self.instance
        parent = attrs.get("parent", instance.parent if instance else None)
        menu_type = attrs.get("menu_type", instance.menu_type if instance else "navigation")

        if parent is not None:
            if parent.menu_type != menu_type:
                raise serializers.ValidationError({
                    "parent": "Parent menu item must belong to the same menu type."
                })
            if instance is not None and is_descendant(instance, parent):
                raise serializers.ValidationError({
                    "parent": "A menu item cannot be nested under itself or its descendants."
                })
        return attrs

    def create(self, validated_data):
        parent = validated_data.get("parent")
        menu_type = validated_data.get("menu_type", "navigation")
        if "sort_order" not in validated_data:
            validated_data["sort_order"] = get_next_sort_order(menu_type, parent.pk if parent else None)
        validated_data["depth"] = get_depth_for_parent(parent)
        return super().create(validated_data)

    def update(self, instance, validated_data):
        if "parent" in validated_data:
            validated_data["depth"] = get_depth_for_parent(validated_data["parent"])
        menu = super().update(instance, validated_data)
        refresh_subtree(menu)
        return menu
