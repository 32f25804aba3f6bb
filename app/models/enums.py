"""Enum definitions for meters."""

from enum import Enum


class Energy(str, Enum):
    """Kind of energy a main meter measures."""

    ELECTRICITY = "electricity"
    GAS = "gas"
    WATER = "water"
