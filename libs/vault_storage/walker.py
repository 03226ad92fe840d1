"""Namespace listing over the KV v2 data/metadata split.

Stored records keep their full logical key as the single key of their payload
mapping, so reading a data path yields the logical keys stored exactly there.
Hierarchy comes from LIST on the metadata side, which returns the path
segments one level down ("leaf" for records, "folder/" for sub-trees). A key
that is both a record and a folder appears twice, as "b" and "b/".
"""

from __future__ import annotations

import logging

from libs.vault_storage.client import ResultStatus, VaultKVClient
from libs.vault_storage.context import OperationContext
from libs.vault_storage.exceptions import BackendError

logger = logging.getLogger(__name__)


class NamespaceWalker:
    def __init__(self, client: VaultKVClient) -> None:
        self._client = client

    def query_path(
        self,
        data_path: str,
        prefix: str,
        ctx: OperationContext | None = None,
    ) -> list[str]:
        """Return the payload keys stored exactly at ``data_path + prefix``.

        An absent record (or an empty payload) is a valid, empty outcome. A
        path ending in "/" is a folder or the mount root and never holds a
        record, so it is not read at all.

        Raises:
            BackendError: Vault reported errors for the read
        """
        path = data_path + prefix
        if path.endswith("/"):
            return []

        result = self._client.read(path, ctx=ctx)
        if result.status is ResultStatus.ERROR:
            raise BackendError("Failed to query path", result.errors, key=prefix or None)
        if result.status is ResultStatus.NOT_FOUND:
            return []
        return list(result.payload.keys())

    def list_path(
        self,
        meta_path: str,
        data_path: str,
        prefix: str,
        ctx: OperationContext | None = None,
    ) -> list[str]:
        """Return every logical key at or below ``prefix``.

        Walks the tree depth-first with an explicit stack. The starting prefix
        is both read and LISTed. Below it, leaf segments are only read and
        folder segments ("name/") are only LISTed, so each record is visited
        once. A NOT_FOUND listing is an empty folder.

        Raises:
            BackendError: Vault reported errors for a read or a listing
        """
        keys: list[str] = []
        # (meta base, data base, segment, read it, list it)
        stack = [(meta_path, data_path, prefix, True, True)]

        while stack:
            meta_base, data_base, current, read, descend = stack.pop()
            if read:
                keys.extend(self.query_path(data_base, current, ctx=ctx))
            if not descend:
                continue

            listing = self._client.list_children(meta_base + current, ctx=ctx)
            if listing.status is ResultStatus.ERROR:
                raise BackendError("Failed to list path", listing.errors, key=current or None)

            # Reversed so children are visited in the order Vault returned them
            for segment in reversed(listing.keys):
                is_folder = segment.endswith("/")
                stack.append(
                    (
                        meta_base + current,
                        data_base + current,
                        "/" + segment,
                        not is_folder,
                        is_folder,
                    )
                )

        logger.debug(
            "Listed namespace",
            extra={"prefix": prefix, "count": len(keys), "backend": "vault"},
        )
        return keys
