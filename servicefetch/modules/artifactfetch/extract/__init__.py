from .extractor import ArchiveExtractor, iter_tar_entries
from .service_dir import infer_service_dir

__all__ = ["ArchiveExtractor", "iter_tar_entries", "infer_service_dir"]
