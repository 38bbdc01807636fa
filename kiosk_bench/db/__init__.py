"""DDL for the `kiosk_events` table, shipped as package data."""
