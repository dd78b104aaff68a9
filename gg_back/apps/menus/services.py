from asgiref.sync import sync_to_async
from django.db.models import Max

from .models import MenuItem


def _str_or_none(value):
    return str(value) if value is not None else None


# 특정 메뉴 타입의 표시 메뉴를 평면 목록으로 반환하는 함수.
def get_menu_hierarchy(menu_type="navigation"):
    """
    menu_type 의 표시 가능한 메뉴를 MenuRecord(dict) 목록으로 반환

    트리 구성은 하지 않음 (apps.menus.utils.build_menu_tree 담당)
    """
    menus = (
        MenuItem.objects
        .filter(menu_type=menu_type, is_visible=True)
        .select_related("page")
        .order_by("depth", "sort_order")
    )

    records = []
    for menu in menus:
        records.append({
            "id": str(menu.id),
            "name": menu.name,
            "href": menu.href,
            "parent_id": _str_or_none(menu.parent_id),
            "sort_order": menu.sort_order,
            "depth": menu.depth,
            "icon_name": menu.icon_name,
            "description": menu.description,
            "target_blank": menu.target_blank,
            "page_id": _str_or_none(menu.page_id),
            "page_title": menu.page.title if menu.page else None,
            "page_slug": menu.page.slug if menu.page else None,
        })
    return records


# MenuHierarchy 기본 데이터 소스 (비동기)
fetch_menu_records = sync_to_async(get_menu_hierarchy)


def get_next_sort_order(menu_type, parent_id=None):
    """형제 메뉴 중 가장 큰 sort_order + 1 (형제가 없으면 0)"""
    result = (
        MenuItem.objects
        .filter(menu_type=menu_type, parent_id=parent_id)
        .aggregate(max_order=Max("sort_order"))
    )
    if result["max_order"] is None:
        return 0
    return result["max_order"] + 1


def get_depth_for_parent(parent):
    return parent.depth + 1 if parent else 0


def refresh_subtree(menu):
    """부모/메뉴 타입 변경 후 하위 메뉴 depth, menu_type 재계산"""
    stack = [menu]
    while stack:
        node = stack.pop()
        for child in node.children.all():
            depth = node.depth + 1
            if child.depth != depth or child.menu_type != node.menu_type:
                child.depth = depth
                child.menu_type = node.menu_type
                child.save(update_fields=["depth", "menu_type", "updated_at"])
            stack.append(child)


def is_descendant(menu, candidate_parent):
    """candidate_parent 가 menu 자신이거나 menu 의 하위 메뉴인지 확인"""
    node = candidate_parent
    seen = set()
    while node is not None and node.pk not in seen:
        if node.pk == menu.pk:
            return True
        seen.add(node.pk)
        node = node.parent
    return False
