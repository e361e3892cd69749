"""CLI package for Flock"""
from .main import cli

__all__ = ['cli']
