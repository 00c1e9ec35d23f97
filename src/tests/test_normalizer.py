"""Route-key normalization shared by the sync job and the guard."""

from django.test import SimpleTestCase

from access_control.normalizer import normalize, normalize_path, normalize_route_key, route_template


class NormalizeTests(SimpleTestCase):
    def test_route_keys_compare_equal_after_normalization(self):
        self.assertEqual(normalize_route_key("GET", "/Product//:ID/"), "get /product/:id")
        self.assertEqual(normalize_route_key("get", "/product/:id"), "get /product/:id")

    def test_normalize_is_idempotent(self):
        for value in ["POST /api/v1//cart/", "  DELETE /Order/:OrderId  ", "*"]:
            once = normalize(value)
            self.assertEqual(normalize(once), once)

    def test_blank_and_non_string_values_are_empty(self):
        self.assertEqual(normalize(""), "")
        self.assertEqual(normalize("   "), "")
        self.assertEqual(normalize(None), "")

    def test_root_path_keeps_its_slash(self):
        self.assertEqual(normalize_path("/"), "/")
        self.assertEqual(normalize_path("//"), "/")

    def test_normalize_path_keeps_case(self):
        self.assertEqual(normalize_path("/order//:orderId/"), "/order/:orderId")


class RouteTemplateTests(SimpleTestCase):
    def test_converters_become_params(self):
        self.assertEqual(
            route_template("order/<uuid:order_id>/", "/api/v1"),
            "/api/v1/order/:order_id",
        )

    def test_untyped_converter_and_no_prefix(self):
        self.assertEqual(route_template("api/v1/role/<role_id>"), "/api/v1/role/:role_id")

    def test_regex_groups_become_params(self):
        self.assertEqual(route_template(r"^cart/(?P<item_id>[0-9]+)/$"), "/cart/:item_id")

    def test_matched_route_and_declared_path_agree(self):
        # The guard sees the full matched route; the route table prepends the prefix.
        declared = route_template("role/<uuid:role_id>", "/api/v1")
        matched = route_template("api/v1/role/<uuid:role_id>")
        self.assertEqual(normalize_route_key("GET", declared), normalize_route_key("GET", matched))
