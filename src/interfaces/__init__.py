"""Public interface definitions for the external services OpenStream talks to.

Every upstream catalog and the response cache are accessed exclusively
through the abstract base classes defined in this package.  Concrete
adapters live in ``src/providers/`` and are injected at startup by
``src/main.py``, so unit tests can swap in mocks without network access.

CONCRETE PROVIDER MAP:
    Interface                  ->  Concrete implementations (in src/providers/)
    ----------------------------------------------------------------------
    IMusicCatalogProvider      ->  ArchiveProvider, MusicBrainzProvider
    IArtistDirectoryProvider   ->  MusicBrainzProvider
    ICacheProvider             ->  MemoryCacheProvider
"""

from src.interfaces.cache_provider import ICacheProvider
from src.interfaces.music_db_provider import IArtistDirectoryProvider, IMusicCatalogProvider

__all__ = [
    "IArtistDirectoryProvider",
    "ICacheProvider",
    "IMusicCatalogProvider",
]
