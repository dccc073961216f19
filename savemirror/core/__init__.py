"""Core functionality (SSH session, sync orchestration)"""
from .ssh_manager import SSHManager

__all__ = ["SSHManager"]
