"""Coercion boundary between raw backend records and typed core rows."""
