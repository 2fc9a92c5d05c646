"""Edit the [basic] section of a running pingap through its admin API."""

import asyncio

from pingap_config import BASIC_SCHEMA, ConfigStore, EditCycle, StoreConfig, configure_logging


async def main():
    configure_logging("INFO")
    config = StoreConfig(base_url="http://127.0.0.1:3018", authorization="Basic YWRtaW46YWRtaW4=")
    async with ConfigStore.from_config(config) as store:
        await store.load()
        cycle = EditCycle(store, BASIC_SCHEMA, "basic")
        for item in cycle.render().items:
            print(f"{item.label:<32} {item.default_value!r}")

        # -1 clears work_stealing so pingap falls back to its default
        result = await cycle.submit({"threads": "2", "work_stealing": -1})
        for err in result.field_errors:
            print(f"  ! {err.field}: {err.message}")
        if result.error is not None:
            print(f"Update failed: {result.error}")
        elif result.applied:
            print(f"Saved {sorted(result.patch)}")


if __name__ == "__main__":
    asyncio.run(main())
