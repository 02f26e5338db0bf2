"""Temporal client connection factory for the provisioning worker.

Two modes, picked from the environment:

1. **Local dev**: `TEMPORAL_ADDRESS` (default `localhost:7233`), no auth. Works
   with `temporal server start-dev`.

2. **Temporal Cloud**: `TEMPORAL_API_KEY` plus `TEMPORAL_REGIONAL_ENDPOINT`
   (the region-specific address from the namespace "Connect" dialog, not the
   `<ns>.tmprl.cloud` namespace endpoint). TLS is always on.

`TEMPORAL_NAMESPACE` applies to both and defaults to `default`. Payloads are
pydantic models, so both modes use the pydantic data converter.
"""

import os

from temporalio.client import Client
from temporalio.contrib.pydantic import pydantic_data_converter


async def connect() -> Client:
    """Create a connected Temporal client for whichever mode the env selects."""
    namespace = os.environ.get("TEMPORAL_NAMESPACE", "default")
    api_key = os.environ.get("TEMPORAL_API_KEY")

    if api_key:
        address = os.environ.get("TEMPORAL_REGIONAL_ENDPOINT")
        if not address:
            raise ValueError(
                "TEMPORAL_API_KEY is set but TEMPORAL_REGIONAL_ENDPOINT is missing. "
                "Set it to the regional endpoint from the Temporal Cloud 'Connect' dialog."
            )
        # No rpc_metadata here: it breaks API key authentication.
        return await Client.connect(
            address,
            namespace=namespace,
            api_key=api_key,
            tls=True,
            data_converter=pydantic_data_converter,
        )

    address = os.environ.get("TEMPORAL_ADDRESS", "localhost:7233")
    return await Client.connect(
        address, namespace=namespace, data_converter=pydantic_data_converter
    )
