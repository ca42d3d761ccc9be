"""Specification validators."""

from windowspec.validators.specification_validator import SpecificationValidator

__all__ = ["SpecificationValidator"]
