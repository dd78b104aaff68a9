ORPHAN_POLICIES = ("drop", "promote")


def resolve_href(record):
    """명시적 링크 > 연결 페이지 경로 > '#' 순으로 링크 결정"""
    if record.get("href"):
        return record["href"]
    if record.get("page_slug"):
        return f"/page/{record['page_slug']}"
    return "#"


def _sort_forest(roots):
    # 루트부터 깊이 우선으로 형제 목록을 sort_order 기준 정렬 (동률은 입력 순서 유지)
    stack = [roots]
    while stack:
        items = stack.pop()
        items.sort(key=lambda node: node["sort_order"])
        for node in items:
            if node["children"]:
                stack.append(node["children"])


def build_menu_tree(records, orphans="drop"):
    """
    평면 메뉴 목록(parent_id 참조)을 정렬된 트리 목록으로 변환

    Args:
        records: get_menu_hierarchy 결과 (dict 목록, None 허용)
        orphans: 부모를 찾을 수 없는 메뉴 처리 방식
            - "drop": 트리에서 제외 (기본값)
            - "promote": 루트로 승격

    Returns:
        루트 메뉴 노드 목록. 각 노드는 children 목록을 가짐
    """
    if orphans not in ORPHAN_POLICIES:
        raise ValueError(f"Unknown orphan policy: {orphans!r}")

    menu_map = {}
    tree = []

    # 모든 메뉴 노드 생성
    for record in records or []:
        menu_map[record["id"]] = {
            "id": record["id"],
            "name": record["name"],
            "href": resolve_href(record),
            "parent_id": record.get("parent_id"),
            "sort_order": record.get("sort_order") or 0,
            "depth": record.get("depth") or 0,
            "icon_name": record.get("icon_name"),
            "description": record.get("description"),
            "target_blank": bool(record.get("target_blank")),
            "page_id": record.get("page_id"),
            "page_title": record.get("page_title"),
            "page_slug": record.get("page_slug"),
            "children": [],
        }

    # 메뉴 : 부모-자식 관계 연결
    for node in menu_map.values():
        parent_id = node["parent_id"]

        if not parent_id:
            tree.append(node)
            continue

        parent = menu_map.get(parent_id)
        if parent is not None:
            parent["children"].append(node)
        elif orphans == "promote":
            tree.append(node)

    _sort_forest(tree)
    return tree
