"""Extraction sub-package: heuristic field resolvers for forum pages."""

from .avatar import find_avatar, upscale_avatar
from .cascade import Cascade, Page, first_attr, first_link_text, first_text
from .structured import find_structured_node
from .topic import find_topic
from .urlnorm import absolute_url
from .username import find_username
from .when import find_when

__all__ = [
    "Cascade",
    "Page",
    "absolute_url",
    "find_avatar",
    "find_structured_node",
    "find_topic",
    "find_username",
    "find_when",
    "first_attr",
    "first_link_text",
    "first_text",
    "upscale_avatar",
]
