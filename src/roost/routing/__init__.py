"""Routing: trie-based path matching plus lazily indexed name lookups.

Routes can be added at any time. Name and action lookups are indexed on
first use and rebuilt on ``refresh_name_lookups()`` /
``refresh_action_lookups()``.
"""

from roost.routing.route import Route, RouteMatch
from roost.routing.router import Router, parse_path

__all__ = ["Route", "RouteMatch", "Router", "parse_path"]
