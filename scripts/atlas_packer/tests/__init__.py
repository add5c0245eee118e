"""Tests for the atlas packer."""
