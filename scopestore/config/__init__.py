"""Configuration — environment settings and the connectionSaving section."""
