"""Client-side failures of the collaborators the map controller talks to."""


class MapSyncError(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(MapSyncError):
    """The API rejected the submitted entry (HTTP 400)."""


class NotFoundError(MapSyncError):
    """The API has no entry with the requested id (HTTP 404)."""


class UpstreamError(MapSyncError):
    """The API, the geocoder or media storage is unreachable or misbehaving."""


class IdentityError(MapSyncError):
    """The identity assertion could not be decoded or has expired."""
