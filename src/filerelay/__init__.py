"""FileRelay — locate remote files, archive them, upload the archive.

Pipeline:
    FileLocator → FileFetcher (concurrent) → Archiver → ObjectStoreUploader
"""

__version__ = "0.1.0"
