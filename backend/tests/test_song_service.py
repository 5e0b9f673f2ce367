"""Tests for the SongService."""

import pytest

from backend.services.song_service import SongService
from tuneforge.core.exceptions import NotFoundError, ValidationError


class TestCatalogManagement:
    """Tests for admin create, update and delete."""

    @pytest.mark.asyncio
    async def test_create_song_indexes_search_terms(self, song_service: SongService, fake_firestore) -> None:
        song = await song_service.create_song(
            uploaded_by="admin1",
            file_path="songs/song-abc.mp3",
            title="Midnight Drive",
            artist="The Neons",
            genre="electronic",
            duration=245,
            album="Night Moves",
            tags=["synthwave"],
            is_premium=True,
        )

        stored = fake_firestore.collections["songs"][song.id]
        assert stored["is_premium"] is True
        assert {"midnight", "drive", "neons", "night", "moves", "electronic", "synthwave"} <= set(stored["search_terms"])
        assert "the" not in stored["search_terms"]

    @pytest.mark.asyncio
    async def test_create_song_rejects_unknown_genre(self, song_service: SongService, fake_firestore) -> None:
        with pytest.raises(ValidationError):
            await song_service.create_song(
                uploaded_by="admin1",
                file_path="songs/song-abc.mp3",
                title="Midnight Drive",
                artist="The Neons",
                genre="polka-metal",
                duration=245,
            )

        assert fake_firestore.collections.get("songs", {}) == {}

    @pytest.mark.asyncio
    async def test_update_song_refreshes_search_terms(self, song_service: SongService, make_song) -> None:
        make_song("s1", title="Old Name")

        song = await song_service.update_song("s1", title="Brand New", is_featured=True)

        assert song.title == "Brand New"
        assert "brand" in song.search_terms
        assert "old" not in song.search_terms
        assert (await song_service.get_song("s1")).is_featured is True

    @pytest.mark.asyncio
    async def test_update_rejects_non_editable_fields(self, song_service: SongService, make_song) -> None:
        make_song("s1")

        with pytest.raises(ValidationError, match="play_count"):
            await song_service.update_song("s1", play_count=1000)

    @pytest.mark.asyncio
    async def test_update_rejects_invalid_values(self, song_service: SongService, make_song) -> None:
        make_song("s1")

        with pytest.raises(ValidationError):
            await song_service.update_song("s1", genre="polka")

    @pytest.mark.asyncio
    async def test_deactivate_and_delete(self, song_service: SongService, make_song, fake_firestore) -> None:
        make_song("s1")
        make_song("s2")

        await song_service.deactivate_song("s1")
        deleted = await song_service.delete_song("s2")

        assert fake_firestore.collections["songs"]["s1"]["is_active"] is False
        assert deleted.file_path == "songs/s2.mp3"
        assert "s2" not in fake_firestore.collections["songs"]
        with pytest.raises(NotFoundError):
            await song_service.get_song("s2")


class TestListSongs:
    """Tests for list_songs."""

    @pytest.mark.asyncio
    async def test_hides_premium_and_inactive_by_default(self, song_service: SongService, make_song) -> None:
        make_song("free")
        make_song("premium", is_premium=True)
        make_song("hidden", is_active=False)

        songs, total = await song_service.list_songs()
        assert [song.id for song in songs] == ["free"]
        assert total == 1

        songs, total = await song_service.list_songs(include_premium=True)
        assert {song.id for song in songs} == {"free", "premium"}

        songs, total = await song_service.list_songs(include_premium=True, include_inactive=True)
        assert total == 3

    @pytest.mark.asyncio
    async def test_filters(self, song_service: SongService, make_song) -> None:
        make_song("s1", genre="rock", release_year=1999, mood="energetic")
        make_song("s2", genre="rock", release_year=2005)
        make_song("s3", genre="jazz", release_year=1999)

        rock, _ = await song_service.list_songs(genre="rock")
        nineties, _ = await song_service.list_songs(year=1999)
        energetic, _ = await song_service.list_songs(mood="energetic")

        assert {song.id for song in rock} == {"s1", "s2"}
        assert {song.id for song in nineties} == {"s1", "s3"}
        assert [song.id for song in energetic] == ["s1"]

    @pytest.mark.asyncio
    async def test_artist_substring(self, song_service: SongService, make_song) -> None:
        make_song("s1", artist="Daft Punk")
        make_song("s2", artist="Punk Rockers")
        make_song("s3", artist="Miles Davis")

        songs, total = await song_service.list_songs(artist="PUNK")

        assert {song.id for song in songs} == {"s1", "s2"}
        assert total == 2

    @pytest.mark.asyncio
    async def test_search_matches_any_token(self, song_service: SongService, make_song) -> None:
        make_song("s1", title="Blue Moon")
        make_song("s2", title="Red Sky", tags=["moonlight"])
        make_song("s3", title="Green Fields", album="Moon Songs")

        songs, total = await song_service.list_songs(search="moon")

        assert {song.id for song in songs} == {"s1", "s3"}
        assert total == 2

    @pytest.mark.asyncio
    async def test_stopword_only_search_is_empty(self, song_service: SongService, make_song) -> None:
        make_song("s1", title="The End")

        assert await song_service.list_songs(search="the") == ([], 0)

    @pytest.mark.asyncio
    async def test_sort_and_pagination(self, song_service: SongService, make_song) -> None:
        make_song("s1", title="Charlie", play_count=5)
        make_song("s2", title="Alpha", play_count=50)
        make_song("s3", title="Bravo", play_count=1)

        by_title, _ = await song_service.list_songs(sort="title")
        popular, _ = await song_service.list_songs(sort="popular")
        newest, _ = await song_service.list_songs(sort="newest")
        page, total = await song_service.list_songs(sort="title", limit=1, offset=1)

        assert [song.id for song in by_title] == ["s2", "s3", "s1"]
        assert [song.id for song in popular] == ["s2", "s1", "s3"]
        assert [song.id for song in newest] == ["s3", "s2", "s1"]
        assert [song.id for song in page] == ["s3"]
        assert total == 3


class TestDiscovery:
    """Tests for trending, featured, related and aggregates."""

    @pytest.mark.asyncio
    async def test_trending_excludes_inactive(self, song_service: SongService, make_song) -> None:
        make_song("s1", play_count=10)
        make_song("s2", play_count=99, is_active=False)
        make_song("s3", play_count=20)

        assert [song.id for song in await song_service.get_trending()] == ["s3", "s1"]

    @pytest.mark.asyncio
    async def test_featured(self, song_service: SongService, make_song) -> None:
        make_song("s1", is_featured=True)
        make_song("s2")

        assert [song.id for song in await song_service.get_featured()] == ["s1"]

    @pytest.mark.asyncio
    async def test_related_prefers_artist(self, song_service: SongService, make_song) -> None:
        seed = make_song("seed", artist="Nina", genre="jazz")
        make_song("same-artist", artist="Nina", genre="blues")
        make_song("same-genre", artist="Chet", genre="jazz")
        make_song("unrelated", artist="Bob", genre="reggae")

        related = await song_service.get_related(seed)

        assert [song.id for song in related] == ["same-artist", "same-genre"]

    @pytest.mark.asyncio
    async def test_genres_and_artists(self, song_service: SongService, make_song) -> None:
        make_song("s1", genre="rock", artist="A")
        make_song("s2", genre="rock", artist="A")
        make_song("s3", genre="jazz", artist="B")
        make_song("s4", genre="folk", artist="C", is_active=False)

        assert await song_service.get_genres() == ["rock", "jazz"]
        assert await song_service.get_genre_counts() == {"rock": 2, "jazz": 1}
        assert await song_service.get_artists() == [("A", 2), ("B", 1)]

    @pytest.mark.asyncio
    async def test_stats(self, song_service: SongService, make_song) -> None:
        make_song("s1")
        make_song("s2", is_premium=True)
        make_song("s3", is_active=False)

        assert await song_service.get_stats() == {"total": 3, "active": 2, "premium": 1}


class TestInteractions:
    """Tests for plays, reactions and comments."""

    @pytest.mark.asyncio
    async def test_record_play(self, song_service: SongService, make_song) -> None:
        make_song("s1", play_count=4)

        song = await song_service.record_play("s1")

        assert song.play_count == 5
        assert (await song_service.get_song("s1")).play_count == 5

    @pytest.mark.asyncio
    async def test_like_then_dislike_is_exclusive(self, song_service: SongService, make_song) -> None:
        make_song("s1")

        await song_service.toggle_like("s1", "u1")
        song = await song_service.toggle_dislike("s1", "u1")

        assert song.likes == []
        assert song.dislikes == ["u1"]
        stored = await song_service.get_song("s1")
        assert stored.likes == []
        assert stored.dislikes == ["u1"]

    @pytest.mark.asyncio
    async def test_comments(self, song_service: SongService, make_song) -> None:
        make_song("s1")

        first = await song_service.add_comment("s1", "u1", "  great track  ")
        await song_service.add_comment("s1", "u2", "agreed")
        page, total = await song_service.get_comments("s1", limit=1, offset=1)

        assert first.text == "great track"
        assert total == 2
        assert [comment.user_id for comment in page] == ["u2"]

    @pytest.mark.asyncio
    async def test_comment_length_limits(self, song_service: SongService, make_song) -> None:
        make_song("s1")

        with pytest.raises(ValidationError):
            await song_service.add_comment("s1", "u1", "   ")
        with pytest.raises(ValidationError):
            await song_service.add_comment("s1", "u1", "x" * 501)

        await song_service.add_comment("s1", "u1", "x" * 500)

    @pytest.mark.asyncio
    async def test_unknown_song(self, song_service: SongService) -> None:
        with pytest.raises(NotFoundError):
            await song_service.record_play("missing")
