"""
Tests for the packing tree, bins and first-fit allocator.
"""

import random
import unittest
from PIL import Image

from ..processing.catalog import ImageEntry, ImageCatalog
from ..processing.packing import Rectangle, PackingNode, AtlasBin, AtlasAllocator


def entry(identifier, width, height, color=None):
    """Create an image entry, optionally backed by a solid-colour image."""
    if color is None:
        return ImageEntry(identifier, width, height)
    return ImageEntry.from_image(identifier, Image.new('RGBA', (width, height), color))


class TestRectangle(unittest.TestCase):
    """Test Rectangle class functionality."""

    def test_rectangle_properties(self):
        """Test rectangle property calculations."""
        rect = Rectangle(10, 20, 30, 40)

        self.assertEqual(rect.right, 40)
        self.assertEqual(rect.bottom, 60)
        self.assertEqual(rect.area, 1200)

    def test_intersects(self):
        """Test rectangle intersection."""
        rect1 = Rectangle(10, 10, 20, 20)
        touching = Rectangle(30, 10, 20, 20)
        overlapping = Rectangle(15, 15, 10, 10)

        self.assertFalse(rect1.intersects(touching))
        self.assertTrue(rect1.intersects(overlapping))

    def test_contains(self):
        """Test rectangle containment."""
        outer = Rectangle(5, 5, 90, 90)

        self.assertTrue(outer.contains(Rectangle(5, 5, 90, 90)))
        self.assertTrue(outer.contains(Rectangle(10, 10, 10, 10)))
        self.assertFalse(outer.contains(Rectangle(0, 0, 10, 10)))
        self.assertFalse(outer.contains(Rectangle(90, 90, 10, 10)))


class TestPackingNode(unittest.TestCase):
    """Test PackingNode insertion."""

    def test_exact_fit_occupies_leaf(self):
        """An image matching the leaf exactly is placed without splitting."""
        node = PackingNode(Rectangle(0, 0, 32, 16))

        placed = node.insert(entry("a", 32, 16))

        self.assertIs(placed, node)
        self.assertTrue(node.is_leaf)
        self.assertEqual(node.occupant.identifier, "a")

    def test_occupied_leaf_rejects(self):
        """An occupied leaf never accepts a second image."""
        node = PackingNode(Rectangle(0, 0, 32, 16))
        node.insert(entry("a", 32, 16))

        self.assertIsNone(node.insert(entry("b", 1, 1)))

    def test_too_large_rejected(self):
        """Images wider or taller than the leaf do not fit."""
        node = PackingNode(Rectangle(0, 0, 50, 50))

        self.assertIsNone(node.insert(entry("wide", 51, 10)))
        self.assertIsNone(node.insert(entry("tall", 10, 51)))
        self.assertTrue(node.is_leaf)
        self.assertIsNone(node.occupant)

    def test_split_along_width_when_more_horizontal_slack(self):
        """dw > dh splits into a column of image width and the remainder."""
        node = PackingNode(Rectangle(0, 0, 100, 50))

        placed = node.insert(entry("a", 30, 40), padding=2)

        first, second = node.children
        self.assertEqual(first.rect, Rectangle(0, 0, 30, 50))
        self.assertEqual(second.rect, Rectangle(32, 0, 68, 50))
        self.assertEqual(placed.rect, Rectangle(0, 0, 30, 40))

    def test_split_along_height_on_tie(self):
        """dw == dh splits into a row of image height and the remainder."""
        node = PackingNode(Rectangle(0, 0, 100, 100))

        placed = node.insert(entry("a", 60, 60))

        first, second = node.children
        self.assertEqual(first.rect, Rectangle(0, 0, 100, 60))
        self.assertEqual(second.rect, Rectangle(0, 60, 100, 40))
        self.assertEqual(placed.rect, Rectangle(0, 0, 60, 60))

    def test_split_is_permanent(self):
        """A split node keeps its children and never gains an occupant."""
        node = PackingNode(Rectangle(0, 0, 100, 100))
        node.insert(entry("a", 60, 60))
        children = node.children

        node.insert(entry("b", 10, 10))

        self.assertIs(node.children, children)
        self.assertIsNone(node.occupant)
        self.assertFalse(node.is_leaf)

    def test_first_child_searched_before_second(self):
        """Insertion prefers the first child when both could hold the image."""
        node = PackingNode(Rectangle(0, 0, 100, 100))
        node.insert(entry("a", 60, 60))

        placed = node.insert(entry("b", 10, 10))

        self.assertEqual(placed.rect, Rectangle(60, 0, 10, 10))


class TestAtlasBin(unittest.TestCase):
    """Test AtlasBin placement and registry."""

    def test_root_covers_padded_interior(self):
        """The packing tree starts inside the border padding."""
        atlas_bin = AtlasBin(100, 80, padding=5)

        self.assertEqual(atlas_bin.interior, Rectangle(5, 5, 90, 70))

    def test_padding_between_neighbours(self):
        """Neighbouring images are separated by the padding."""
        atlas_bin = AtlasBin(100, 100, padding=5, composite=False)

        self.assertTrue(atlas_bin.add_image(entry("a", 40, 20)))
        self.assertTrue(atlas_bin.add_image(entry("b", 45, 20)))

        self.assertEqual(atlas_bin.rect_for("a"), Rectangle(5, 5, 40, 20))
        self.assertEqual(atlas_bin.rect_for("b"), Rectangle(50, 5, 45, 20))

    def test_rejection_leaves_bin_unchanged(self):
        """A rejected image is not registered."""
        atlas_bin = AtlasBin(50, 50, composite=False)
        atlas_bin.add_image(entry("a", 50, 50))

        self.assertFalse(atlas_bin.add_image(entry("b", 10, 10)))
        self.assertNotIn("b", atlas_bin)
        self.assertEqual(len(atlas_bin), 1)

    def test_placements_ordered_by_identifier(self):
        """Registry entries come back sorted by identifier."""
        atlas_bin = AtlasBin(100, 100, composite=False)
        for name in ("zeta", "alpha", "mid"):
            atlas_bin.add_image(entry(name, 10, 10))

        self.assertEqual([name for name, _ in atlas_bin.placements()], ["alpha", "mid", "zeta"])

    def test_composites_pixels_at_origin(self):
        """Placed image pixels are copied into the canvas."""
        atlas_bin = AtlasBin(64, 64, padding=4)
        atlas_bin.add_image(entry("red", 8, 8, (255, 0, 0, 255)))

        rect = atlas_bin.rect_for("red")
        self.assertEqual(atlas_bin.canvas.getpixel((rect.x, rect.y)), (255, 0, 0, 255))
        self.assertEqual(atlas_bin.canvas.getpixel((rect.right - 1, rect.bottom - 1)), (255, 0, 0, 255))
        self.assertEqual(atlas_bin.canvas.getpixel((0, 0)), (0, 0, 0, 0))

    def test_efficiency(self):
        """Efficiency is placed area over canvas area."""
        atlas_bin = AtlasBin(100, 100, composite=False)
        atlas_bin.add_image(entry("a", 50, 50))

        self.assertEqual(atlas_bin.used_area, 2500)
        self.assertAlmostEqual(atlas_bin.efficiency, 0.25)


class TestAtlasAllocator(unittest.TestCase):
    """Test first-fit allocation across bins."""

    def test_starts_with_one_empty_bin(self):
        """A fresh allocator holds a single empty bin."""
        allocator = AtlasAllocator(64, 64, composite=False)

        self.assertEqual(len(allocator.bins), 1)
        self.assertEqual(len(allocator.bins[0]), 0)

    def test_worked_example(self):
        """Two 60x60 images need two bins; a small image goes back into the first."""
        catalog = ImageCatalog(100, 100)
        for item in (entry("C", 10, 10), entry("B", 60, 60), entry("A", 60, 60)):
            catalog.add(item)

        bins = AtlasAllocator(100, 100, composite=False).allocate(catalog.ordered())

        self.assertEqual(len(bins), 2)
        self.assertEqual(bins[0].rect_for("A"), Rectangle(0, 0, 60, 60))
        self.assertEqual(bins[1].rect_for("B"), Rectangle(0, 0, 60, 60))
        self.assertEqual(bins[0].rect_for("C"), Rectangle(60, 0, 10, 10))
        self.assertNotIn("C", bins[1])

    def test_overflow_uses_separate_bins(self):
        """Two images each covering more than half a canvas never share a bin."""
        bins = AtlasAllocator(100, 100, composite=False).allocate(
            [entry("a", 80, 70), entry("b", 80, 70)]
        )

        self.assertEqual(len(bins), 2)
        self.assertIn("a", bins[0])
        self.assertIn("b", bins[1])

    def test_first_fit_prefers_earliest_bin(self):
        """An image that fits several bins lands in the first one created."""
        allocator = AtlasAllocator(100, 100, composite=False)
        allocator.allocate([entry("a", 100, 90), entry("b", 100, 90)])

        index = allocator.place(entry("c", 5, 5))

        self.assertEqual(index, 0)
        self.assertEqual(len(allocator.bins), 2)

    def test_entry_too_large_for_empty_bin(self):
        """Entries that bypass the catalog and cannot fit an empty bin are refused."""
        allocator = AtlasAllocator(100, 100, padding=10, composite=False)

        with self.assertRaises(ValueError):
            allocator.place(entry("a", 100, 100))


class TestPackingProperties(unittest.TestCase):
    """Properties that must hold for any input that fits the canvas."""

    WIDTH = 128
    HEIGHT = 96
    PADDING = 2

    def setUp(self):
        rng = random.Random(1234)
        self.entries = [
            entry(f"sprites/img_{i:03d}", rng.randint(1, 40), rng.randint(1, 40))
            for i in range(80)
        ]

    def _allocate(self, entries):
        catalog = ImageCatalog(self.WIDTH, self.HEIGHT, self.PADDING)
        for item in entries:
            catalog.add(item)
        return AtlasAllocator(self.WIDTH, self.HEIGHT, self.PADDING, composite=False).allocate(catalog.ordered())

    def test_every_image_placed_exactly_once(self):
        """No image is dropped or duplicated."""
        bins = self._allocate(self.entries)

        placed = [name for atlas_bin in bins for name, _ in atlas_bin.placements()]
        self.assertEqual(sorted(placed), sorted(e.identifier for e in self.entries))

    def test_placements_keep_padding_and_bounds(self):
        """Placements stay inside the padded interior and keep the padding gap."""
        bins = self._allocate(self.entries)
        pad = self.PADDING

        for atlas_bin in bins:
            rects = [rect for _, rect in atlas_bin.placements()]
            for rect in rects:
                self.assertTrue(atlas_bin.interior.contains(rect))
            for i, first in enumerate(rects):
                grown_first = Rectangle(first.x, first.y, first.width + pad, first.height + pad)
                for second in rects[i + 1:]:
                    grown_second = Rectangle(second.x, second.y, second.width + pad, second.height + pad)
                    self.assertFalse(grown_first.intersects(second))
                    self.assertFalse(grown_second.intersects(first))

    def test_allocation_is_deterministic(self):
        """Input order does not change the result."""
        shuffled = list(self.entries)
        random.Random(99).shuffle(shuffled)

        first = [atlas_bin.placements() for atlas_bin in self._allocate(self.entries)]
        second = [atlas_bin.placements() for atlas_bin in self._allocate(shuffled)]

        self.assertEqual(first, second)


if __name__ == '__main__':
    unittest.main()
