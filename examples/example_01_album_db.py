"""Example 01: Album Database - riakhttp Fundamentals.

This example demonstrates the fundamental operations against a running Riak
node (default http://127.0.0.1:8098, override with RIAK_URL):
- Storing pydantic models with secondary indexes via Bucket.store()
- Fetching values back and validating them with Value.as_model()
- Exact and range index lookups
- Turning on allow_mult and merging siblings with a MergeResolver
"""

import asyncio

from pydantic import BaseModel

from riakhttp import IndexEntry, MergeResolver, RiakClient, RiakConfig, Value


class Track(BaseModel):
    number: int
    title: str


class Album(BaseModel):
    title: str
    artist: str
    released_in: int
    tracks: list[Track]


ALBUMS = {
    "abbey-road": Album(
        title="Abbey Road",
        artist="The Beatles",
        released_in=1969,
        tracks=[Track(number=1, title="Come Together"), Track(number=2, title="Something")],
    ),
    "let-it-be": Album(
        title="Let It Be",
        artist="The Beatles",
        released_in=1970,
        tracks=[Track(number=1, title="Two of Us")],
    ),
    "led-zeppelin-ii": Album(
        title="Led Zeppelin II",
        artist="Led Zeppelin",
        released_in=1969,
        tracks=[Track(number=1, title="Whole Lotta Love")],
    ),
}


def album_indexes(album: Album) -> list[IndexEntry]:
    return [IndexEntry.bin("artist", album.artist), IndexEntry.int_("released_in", album.released_in)]


def merge_albums(older: bytes, newer: bytes) -> bytes:
    """Merge two sibling albums: newest fields win, track lists are unioned."""
    a = Value(data=older).as_model(Album)
    b = Value(data=newer).as_model(Album)
    tracks = {t.number: t for t in a.tracks}
    tracks.update({t.number: t for t in b.tracks})
    merged = b.model_copy(update={"tracks": [tracks[n] for n in sorted(tracks)]})
    return merged.model_dump_json().encode("utf-8")


async def main():
    """Run the album database example."""
    print("=" * 80)
    print("RIAKHTTP ALBUM DATABASE EXAMPLE")
    print("=" * 80)

    async with RiakClient(RiakConfig.from_env()) as client:
        albums = client.bucket("albums", resolver=MergeResolver(merge_albums))
        await albums.set_properties({"allow_mult": True})
        props = await albums.properties()
        print(f"\n✓ Bucket 'albums' ready (n_val={props.n_val}, allow_mult={props.allow_mult})")

        # Store every album with its indexes
        print("\nStoring albums...")
        for key, album in ALBUMS.items():
            await albums.store(key, album, indexes=album_indexes(album))
            print(f"  ✓ {key}")

        # Fetch one back
        value = await albums.fetch("abbey-road")
        if value is not None:
            album = value.as_model(Album)
            print(f"\nFetched '{album.title}' ({len(album.tracks)} tracks), etag={value.etag}")

        # Exact index lookup
        beatles = await albums.fetch_by_index("artist", "The Beatles")
        print(f"\nAlbums by The Beatles: {sorted(v.as_model(Album).title for v in beatles)}")

        # Range index lookup
        sixties = await albums.fetch_by_index_range("released_in", 1960, 1969)
        print(f"Albums released in the sixties: {sorted(v.as_model(Album).title for v in sixties)}")

        # Two writers without a vector clock create siblings; the next fetch merges them
        extra = ALBUMS["let-it-be"].model_copy(
            update={"tracks": [Track(number=2, title="Dig a Pony")]}
        )
        await albums.store("let-it-be", extra, indexes=album_indexes(extra))
        merged = await albums.fetch("let-it-be")
        if merged is not None:
            titles = [t.title for t in merged.as_model(Album).tracks]
            print(f"\nMerged 'Let It Be' tracks: {titles}")

        # Cleanup
        for key in ALBUMS:
            await albums.delete(key)
        print("\n✓ Albums deleted")


if __name__ == "__main__":
    asyncio.run(main())
