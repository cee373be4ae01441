from .archive import ArchiveKind, expected_kind, detect_kind, validate_archive, decompress_gzip
from .downloader import ArchiveDownloader, filename_from_url
from .snapshot import DatabaseSnapshotter
from .strapi_cli import StrapiCLI
from .importer import BackupImporter, ImportOptions, ImportContext, ImportPhase, PHASE_SEQUENCE
from .exporter import BackupExporter

__all__ = [
    'ArchiveKind', 'expected_kind', 'detect_kind', 'validate_archive', 'decompress_gzip',
    'ArchiveDownloader', 'filename_from_url',
    'DatabaseSnapshotter',
    'StrapiCLI',
    'BackupImporter', 'ImportOptions', 'ImportContext', 'ImportPhase', 'PHASE_SEQUENCE',
    'BackupExporter'
]
