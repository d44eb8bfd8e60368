"""Routing — pattern compilation, the ordered route table, and route factories.

Routes are registered during setup; the dispatch loop in ``perch.router``
walks them in registration order.
"""
