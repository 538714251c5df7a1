from django.test import SimpleTestCase

from cookbook.utils import composite_id, new_document_id


class UtilsTests(SimpleTestCase):
    def test_composite_id(self):
        self.assertEqual(composite_id("r1", "u1"), "r1_u1")

    def test_new_document_ids_are_unique_hex(self):
        first, second = new_document_id(), new_document_id()
        self.assertNotEqual(first, second)
        self.assertEqual(len(first), 32)
        int(first, 16)
