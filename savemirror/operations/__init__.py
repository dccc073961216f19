"""Operations (paths, probing, remote tree, transfer, backup)"""
from .paths import normalize, candidates, primary
from .probe import exists, ProbeResult
from .remote_tree import mkdir_all, remove_recursive, ensure_empty, upload_dir, download_dir
from .transfer import NativeTransport, ExternalTransport, detect_scp_tools, run_command, select_transport
from .backup import snapshot, snapshot_local

__all__ = [
    "normalize", "candidates", "primary",
    "exists", "ProbeResult",
    "mkdir_all", "remove_recursive", "ensure_empty", "upload_dir", "download_dir",
    "NativeTransport", "ExternalTransport", "detect_scp_tools", "run_command", "select_transport",
    "snapshot", "snapshot_local",
]
