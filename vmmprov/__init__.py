"""Provision VMs through a Virtual Machine Manager service."""

__version__ = '0.1.0'
