import asyncio
from unittest import mock

from asgiref.sync import async_to_sync
from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from .hierarchy import MenuHierarchy
from .models import MenuItem, Page
from .services import get_menu_hierarchy
from .utils import build_menu_tree


def record(id, parent_id=None, sort_order=0, **extra):
    data = {
        "id": id,
        "name": id.upper(),
        "href": "",
        "parent_id": parent_id,
        "sort_order": sort_order,
        "depth": 0,
        "icon_name": None,
        "description": None,
        "target_blank": False,
        "page_id": None,
        "page_title": None,
        "page_slug": None,
    }
    data.update(extra)
    return data


def ids(nodes):
    return [node["id"] for node in nodes]


def static_source(records):
    async def source(menu_type):
        return records
    return source


class BuildMenuTreeTest(SimpleTestCase):
    """평면 목록 -> 트리 변환 테스트"""

    def test_children_match_parent_and_sorted(self):
        records = [
            record("about", sort_order=2),
            record("team", parent_id="about", sort_order=1),
            record("home", sort_order=1),
            record("history", parent_id="about", sort_order=0),
            record("founders", parent_id="history", sort_order=0),
        ]

        tree = build_menu_tree(records)

        self.assertEqual(ids(tree), ["home", "about"])
        about = tree[1]
        self.assertEqual(ids(about["children"]), ["history", "team"])
        self.assertEqual(ids(about["children"][0]["children"]), ["founders"])
        self.assertEqual(tree[0]["children"], [])

    def test_orphan_is_dropped(self):
        records = [
            record("home"),
            record("lost", parent_id="missing"),
            record("lost-child", parent_id="lost"),
        ]

        tree = build_menu_tree(records)

        self.assertEqual(ids(tree), ["home"])
        self.assertEqual(tree[0]["children"], [])

    def test_orphan_promoted_when_configured(self):
        records = [record("home", sort_order=1), record("lost", parent_id="missing", sort_order=0)]

        tree = build_menu_tree(records, orphans="promote")

        self.assertEqual(ids(tree), ["lost", "home"])

    def test_equal_sort_order_keeps_input_order(self):
        records = [
            record("root"),
            record("a", parent_id="root", sort_order=1),
            record("b", parent_id="root", sort_order=1),
            record("c", parent_id="root", sort_order=0),
        ]

        tree = build_menu_tree(records)

        self.assertEqual(ids(tree[0]["children"]), ["c", "a", "b"])

    def test_empty_and_null_input(self):
        self.assertEqual(build_menu_tree([]), [])
        self.assertEqual(build_menu_tree(None), [])

    def test_cycle_never_appears(self):
        records = [record("home"), record("x", parent_id="y"), record("y", parent_id="x")]

        self.assertEqual(ids(build_menu_tree(records)), ["home"])

    def test_href_resolution(self):
        records = [
            record("explicit", href="/events", page_slug="ignored"),
            record("paged", page_slug="how-to"),
            record("plain"),
        ]

        hrefs = {node["id"]: node["href"] for node in build_menu_tree(records)}

        self.assertEqual(hrefs, {"explicit": "/events", "paged": "/page/how-to", "plain": "#"})

    def test_unknown_orphan_policy(self):
        with self.assertRaises(ValueError):
            build_menu_tree([], orphans="adopt")


class MenuHierarchyTest(SimpleTestCase):
    """MenuHierarchy fetch / error / 겹치는 요청 테스트"""

    def test_fetch_success(self):
        hierarchy = MenuHierarchy(source=static_source([record("home"), record("faq", parent_id="home")]))

        menu_items, error = async_to_sync(hierarchy.fetch)()

        self.assertIsNone(error)
        self.assertEqual(ids(menu_items), ["home"])
        self.assertEqual(ids(menu_items[0]["children"]), ["faq"])
        self.assertFalse(hierarchy.loading)

    def test_null_result_is_empty_forest(self):
        hierarchy = MenuHierarchy(source=static_source(None))

        menu_items, error = async_to_sync(hierarchy.fetch)()

        self.assertEqual(menu_items, [])
        self.assertIsNone(error)

    def test_menu_type_passed_to_source(self):
        seen = []

        async def source(menu_type):
            seen.append(menu_type)
            return []

        hierarchy = MenuHierarchy(source=source)
        async_to_sync(hierarchy.fetch)()
        async_to_sync(hierarchy.fetch)("footer")
        async_to_sync(hierarchy.refetch)()

        self.assertEqual(seen, ["navigation", "footer", "footer"])

    def test_failure_keeps_previous_forest(self):
        responses = [[record("home")], RuntimeError("connection refused")]

        async def source(menu_type):
            result = responses.pop(0)
            if isinstance(result, Exception):
                raise result
            return result

        hierarchy = MenuHierarchy(source=source)
        async_to_sync(hierarchy.fetch)()
        menu_items, error = async_to_sync(hierarchy.refetch)()

        self.assertEqual(ids(menu_items), ["home"])
        self.assertEqual(error, "connection refused")
        self.assertFalse(hierarchy.loading)

    def test_failure_without_message(self):
        async def source(menu_type):
            raise RuntimeError()

        hierarchy = MenuHierarchy(source=source)
        _, error = async_to_sync(hierarchy.fetch)()

        self.assertEqual(error, "Failed to fetch menu")

    def test_success_clears_error(self):
        responses = [RuntimeError("boom"), [record("home")]]

        async def source(menu_type):
            result = responses.pop(0)
            if isinstance(result, Exception):
                raise result
            return result

        hierarchy = MenuHierarchy(source=source)
        async_to_sync(hierarchy.fetch)()
        self.assertEqual(hierarchy.error, "boom")

        async_to_sync(hierarchy.fetch)()
        self.assertIsNone(hierarchy.error)

    def _race(self, stale_fetches):
        async def scenario():
            gates = {"slow": asyncio.Event(), "fast": asyncio.Event()}

            async def source(menu_type):
                await gates[menu_type].wait()
                return [record(menu_type)]

            hierarchy = MenuHierarchy(source=source, stale_fetches=stale_fetches)
            first = asyncio.ensure_future(hierarchy.fetch("slow"))
            second = asyncio.ensure_future(hierarchy.fetch("fast"))
            await asyncio.sleep(0)
            self.assertTrue(hierarchy.loading)

            gates["fast"].set()
            await second
            self.assertTrue(hierarchy.loading)

            gates["slow"].set()
            await first
            self.assertFalse(hierarchy.loading)
            return hierarchy

        return async_to_sync(scenario)()

    def test_overlapping_fetches_last_write_wins(self):
        hierarchy = self._race("last_write_wins")

        self.assertEqual(ids(hierarchy.menu_items), ["slow"])

    def test_overlapping_fetches_latest_request_wins(self):
        hierarchy = self._race("latest_request_wins")

        self.assertEqual(ids(hierarchy.menu_items), ["fast"])

    def test_unknown_policies(self):
        with self.assertRaises(ValueError):
            MenuHierarchy(source=static_source([]), stale_fetches="cancel")
        with self.assertRaises(ValueError):
            MenuHierarchy(source=static_source([]), orphans="adopt")


class MenuDataSourceTest(TestCase):
    """DB 메뉴 조회 테스트"""

    def setUp(self):
        self.page = Page.objects.create(title="How To", slug="how-to", is_published=True)
        self.home = MenuItem.objects.create(name="Home", href="/", sort_order=0)
        self.guide = MenuItem.objects.create(name="Guide", parent=self.home, depth=1, page=self.page)
        MenuItem.objects.create(name="Hidden", is_visible=False)
        MenuItem.objects.create(name="Privacy", menu_type="footer", href="/privacy")

    def test_records_for_menu_type(self):
        records = get_menu_hierarchy("navigation")

        self.assertEqual([r["name"] for r in records], ["Home", "Guide"])
        guide = records[1]
        self.assertEqual(guide["parent_id"], str(self.home.id))
        self.assertEqual(guide["page_slug"], "how-to")
        self.assertEqual(guide["page_title"], "How To")

    def test_hierarchy_endpoint(self):
        response = self.client.get("/api/menus/hierarchy/")

        self.assertEqual(response.status_code, 200)
        menus = response.json()["menus"]
        self.assertEqual([m["name"] for m in menus], ["Home"])
        self.assertEqual(menus[0]["children"][0]["href"], "/page/how-to")

    def test_hierarchy_endpoint_menu_type(self):
        response = self.client.get("/api/menus/hierarchy/", {"menu_type": "footer"})

        self.assertEqual([m["name"] for m in response.json()["menus"]], ["Privacy"])

    def test_hierarchy_endpoint_source_failure(self):
        async def failing_source(menu_type):
            raise RuntimeError("database unavailable")

        with mock.patch("apps.menus.services.fetch_menu_records", failing_source):
            response = self.client.get("/api/menus/hierarchy/")

        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.json()["error"]["message"], "database unavailable")


class MenuItemAdminAPITest(APITestCase):
    """관리자 메뉴 관리 API 테스트"""

    def setUp(self):
        User = get_user_model()
        self.admin = User.objects.create_user(username="admin", password="testpass123", is_staff=True)
        self.member = User.objects.create_user(username="member", password="testpass123")
        self.root = MenuItem.objects.create(name="Venues", href="/approved-venues", sort_order=0)
        MenuItem.objects.create(name="Approved", parent=self.root, depth=1, sort_order=4)

    def test_requires_staff(self):
        self.client.force_authenticate(self.member)

        response = self.client.get("/api/menus/items/")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_create_computes_sort_order_and_depth(self):
        self.client.force_authenticate(self.admin)

        response = self.client.post("/api/menus/items/", {
            "name": "Add Venue",
            "href": "/add-venue",
            "parent": str(self.root.id),
        }, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["sort_order"], 5)
        self.assertEqual(response.data["depth"], 1)

    def test_first_root_of_menu_type_starts_at_zero(self):
        self.client.force_authenticate(self.admin)

        response = self.client.post("/api/menus/items/", {
            "name": "Contact",
            "href": "/contact",
            "menu_type": "footer",
        }, format="json")

        self.assertEqual(response.data["sort_order"], 0)
        self.assertEqual(response.data["depth"], 0)

    def test_cannot_nest_under_descendant(self):
        self.client.force_authenticate(self.admin)
        child = MenuItem.objects.get(name="Approved")

        response = self.client.patch(f"/api/menus/items/{self.root.id}/", {
            "parent": str(child.id),
        }, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()["error"]["field"], "parent")

    def test_moving_updates_subtree_depth(self):
        self.client.force_authenticate(self.admin)
        other = MenuItem.objects.create(name="About", sort_order=1)

        response = self.client.patch(f"/api/menus/items/{self.root.id}/", {
            "parent": str(other.id),
        }, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(MenuItem.objects.get(pk=self.root.pk).depth, 1)
        self.assertEqual(MenuItem.objects.get(name="Approved").depth, 2)

    def test_changing_menu_type_moves_subtree(self):
        self.client.force_authenticate(self.admin)

        response = self.client.patch(f"/api/menus/items/{self.root.id}/", {
            "menu_type": "footer",
        }, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(MenuItem.objects.get(name="Approved").menu_type, "footer")
        self.assertEqual([r["name"] for r in get_menu_hierarchy("footer")], ["Venues", "Approved"])
        self.assertEqual(get_menu_hierarchy("navigation"), [])

    def test_filter_by_menu_type(self):
        self.client.force_authenticate(self.admin)
        MenuItem.objects.create(name="Privacy", menu_type="footer")

        response = self.client.get("/api/menus/items/", {"menu_type": "footer"})

        self.assertEqual([item["name"] for item in response.data], ["Privacy"])
