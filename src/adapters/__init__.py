"""Adaptadores concretos: transportes D-Bus/REST y exportadores."""
