"""JSON conversion layer.

This module maps data maps onto JSON documents and back.
It owns the key suffix convention for timestamps and binary values.
"""
