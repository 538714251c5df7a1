from types import SimpleNamespace

from django.contrib.auth.models import User
from django.test import SimpleTestCase

from cookbook.authentication import FirebaseUser
from cookbook.permissions import IsAuthorOrReadOnly


class IsAuthorOrReadOnlyTests(SimpleTestCase):
    def setUp(self):
        self.permission = IsAuthorOrReadOnly()
        self.recipe = {"id": "r1", "authorId": "alice"}

    def request(self, method, uid):
        return SimpleNamespace(method=method, user=FirebaseUser(uid=uid))

    def test_reads_are_allowed(self):
        self.assertTrue(self.permission.has_object_permission(self.request("GET", "bob"), None, self.recipe))

    def test_writes_need_the_author(self):
        self.assertTrue(self.permission.has_object_permission(self.request("PATCH", "alice"), None, self.recipe))
        self.assertFalse(self.permission.has_object_permission(self.request("DELETE", "bob"), None, self.recipe))

    def test_session_user_is_matched_by_username(self):
        request = SimpleNamespace(method="PATCH", user=User(username="alice"))
        self.assertTrue(self.permission.has_object_permission(request, None, self.recipe))
        request.user = User(username="bob")
        self.assertFalse(self.permission.has_object_permission(request, None, self.recipe))
