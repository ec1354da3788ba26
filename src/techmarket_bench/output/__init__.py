"""Report exporters: aligned console/log table and JSON."""
