"""Tests for MapSyncController ordering, search and publishing flows."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from fakes import make_entry
from mapsync.controller import (
    NOTICE_CREATE_FAILED,
    NOTICE_CREATED,
    NOTICE_IMAGE_REQUIRED,
    NOTICE_NOT_FOUND,
    NOTICE_SIGN_IN_FAILED,
    NOTICE_SIGN_IN_REQUIRED,
    MapSyncController,
)
from mapsync.errors import UpstreamError, ValidationError
from mapsync.schemas import Coordinate

MADRID = Coordinate(lat=40.416775, lon=-3.703790)
A = Coordinate(lat=41.3874, lon=2.1686)
B = Coordinate(lat=39.4699, lon=-0.3763)


async def settle():
    # Let freshly created tasks run up to their first suspension point
    for _ in range(5):
        await asyncio.sleep(0)


def assertion(email="ana@example.com", expires_in=3600):
    now = datetime.now(timezone.utc)
    claims = {
        "email": email,
        "name": "Ana",
        "picture": "http://img/ana.png",
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=expires_in)).timestamp()),
    }
    return jwt.encode(claims, "test-secret", algorithm="HS256")


@pytest.fixture
def controller(api, geocoder, view):
    return MapSyncController(api, geocoder, view, center=MADRID)


class TestRefresh:
    @pytest.mark.asyncio
    async def test_initial_state(self, api, geocoder, view):
        ctrl = MapSyncController(api, geocoder, view)
        assert ctrl.center == MADRID
        assert ctrl.last_queried_center is None
        assert ctrl.displayed_entries == ()

    @pytest.mark.asyncio
    async def test_applies_response_and_recenters(self, controller, api, view):
        task = asyncio.create_task(controller.refresh())
        await settle()
        api.pending[0].set_result([make_entry("a")])

        assert await task is True
        assert api.list_calls == [MADRID]
        assert [e.id for e in controller.displayed_entries] == ["a"]
        assert controller.last_queried_center == MADRID
        assert view.views == [MADRID]

    @pytest.mark.asyncio
    async def test_later_request_wins_when_answered_first(self, controller, api, view):
        first = asyncio.create_task(controller.set_center(A))
        await settle()
        second = asyncio.create_task(controller.set_center(B))
        await settle()

        api.pending[1].set_result([make_entry("b")])
        assert await second is True
        api.pending[0].set_result([make_entry("a")])
        assert await first is False

        assert api.list_calls == [A, B]
        assert [e.id for e in controller.displayed_entries] == ["b"]
        assert controller.last_queried_center == B
        assert controller.center == B
        assert view.views == [B]

    @pytest.mark.asyncio
    async def test_superseded_request_is_discarded_even_if_answered_first(
        self, controller, api, view
    ):
        first = asyncio.create_task(controller.set_center(A))
        await settle()
        second = asyncio.create_task(controller.set_center(B))
        await settle()

        api.pending[0].set_result([make_entry("a")])
        assert await first is False
        assert controller.displayed_entries == ()
        assert view.views == []

        api.pending[1].set_result([make_entry("b")])
        assert await second is True
        assert [e.id for e in controller.displayed_entries] == ["b"]
        assert view.views == [B]

    @pytest.mark.asyncio
    async def test_many_in_flight_only_last_applies(self, controller, api, view):
        centers = [Coordinate(lat=float(i), lon=float(i)) for i in range(5)]
        tasks = []
        for center in centers:
            tasks.append(asyncio.create_task(controller.set_center(center)))
            await settle()

        for index in (3, 1, 4, 0, 2):
            api.pending[index].set_result([make_entry(str(index))])
        results = await asyncio.gather(*tasks)

        assert results == [False, False, False, False, True]
        assert [e.id for e in controller.displayed_entries] == ["4"]
        assert controller.last_queried_center == centers[4]
        assert view.views == [centers[4]]
        assert controller.latest_sequence == 5

    @pytest.mark.asyncio
    async def test_failed_retrieval_keeps_displayed_state(self, controller, api, view):
        task = asyncio.create_task(controller.refresh())
        await settle()
        api.pending[0].set_result([make_entry("a")])
        await task

        task = asyncio.create_task(controller.set_center(A))
        await settle()
        api.pending[1].set_exception(UpstreamError("api down"))

        assert await task is False
        assert [e.id for e in controller.displayed_entries] == ["a"]
        assert controller.last_queried_center == MADRID
        assert controller.center == A
        assert view.views == [MADRID]


class TestSearch:
    @pytest.mark.asyncio
    async def test_found_moves_center_and_retrieves(self, controller, api, view):
        task = asyncio.create_task(controller.search("  Sevilla "))
        await settle()
        sevilla = Coordinate(lat=37.3891, lon=-5.9845)

        assert controller.center == sevilla
        assert api.list_calls == [sevilla]
        api.pending[0].set_result([make_entry("s")])

        assert await task is True
        assert view.views == [sevilla]
        assert view.notices == []

    @pytest.mark.asyncio
    async def test_not_found_notifies_and_keeps_center(self, controller, api, view):
        assert await controller.search("Atlantis") is False
        assert controller.center == MADRID
        assert api.list_calls == []
        assert view.notices == [NOTICE_NOT_FOUND]

    @pytest.mark.asyncio
    async def test_geocoder_failure_reports_not_found_and_keeps_center(
        self, controller, api, geocoder, view
    ):
        geocoder.error = UpstreamError("nominatim down")

        assert await controller.search("Sevilla") is False
        assert controller.center == MADRID
        assert api.list_calls == []
        assert view.notices == [NOTICE_NOT_FOUND]

    @pytest.mark.asyncio
    async def test_blank_search_is_ignored(self, controller, api, view):
        assert await controller.search("   ") is False
        assert api.list_calls == []
        assert view.notices == []

    @pytest.mark.asyncio
    async def test_stale_geocode_does_not_move_map(self, api, view):
        release = asyncio.Event()

        class SlowFirstGeocoder:
            async def resolve(self, text):
                if text == "Sevilla":
                    await release.wait()
                    return Coordinate(lat=37.3891, lon=-5.9845)
                return Coordinate(lat=43.263, lon=-2.935)

        ctrl = MapSyncController(api, SlowFirstGeocoder(), view, center=MADRID)
        slow = asyncio.create_task(ctrl.search("Sevilla"))
        await settle()
        fast = asyncio.create_task(ctrl.search("Bilbao"))
        await settle()
        api.pending[0].set_result([make_entry("bilbao")])
        assert await fast is True

        release.set()
        assert await slow is False
        assert ctrl.center == Coordinate(lat=43.263, lon=-2.935)
        assert len(api.list_calls) == 1


class TestSession:
    def test_sign_in_decodes_profile(self, controller):
        user = controller.sign_in(assertion())
        assert user.email == "ana@example.com"
        assert user.name == "Ana"
        assert controller.user is user

    def test_expired_assertion_is_rejected(self, controller, view):
        assert controller.sign_in(assertion(expires_in=-60)) is None
        assert controller.user is None
        assert view.notices == [NOTICE_SIGN_IN_FAILED]

    def test_garbage_assertion_is_rejected(self, controller, view):
        assert controller.sign_in("not-a-jwt") is None
        assert view.notices == [NOTICE_SIGN_IN_FAILED]

    def test_sign_out(self, controller):
        controller.sign_in(assertion())
        controller.sign_out()
        assert controller.user is None


class TestSubmitEntry:
    @pytest.mark.asyncio
    async def test_requires_sign_in(self, controller, api, view):
        result = await controller.submit_entry("Tapas", 4.0, "Calle Mayor", b"img")
        assert result is None
        assert api.uploads == [] and api.created == []
        assert view.notices == [NOTICE_SIGN_IN_REQUIRED]

    @pytest.mark.asyncio
    async def test_requires_image(self, controller, api, view):
        controller.sign_in(assertion())
        assert await controller.submit_entry("Tapas", 4.0, "Calle Mayor", None) is None
        assert api.created == []
        assert view.notices == [NOTICE_IMAGE_REQUIRED]

    @pytest.mark.asyncio
    async def test_upload_failure_skips_write(self, controller, api, view):
        controller.sign_in(assertion())
        api.upload_error = UpstreamError("storage down")

        assert await controller.submit_entry("Tapas", 4.0, "Calle Mayor", b"img") is None
        assert api.created == []
        assert api.list_calls == []
        assert view.notices == [NOTICE_CREATE_FAILED]

    @pytest.mark.asyncio
    async def test_rejected_entry_notifies(self, controller, api, view):
        controller.sign_in(assertion())
        api.create_error = ValidationError("rating must be between 0 and 5")

        assert await controller.submit_entry("Tapas", 9.0, "Calle Mayor", b"img") is None
        assert api.list_calls == []
        assert view.notices == [NOTICE_CREATE_FAILED]

    @pytest.mark.asyncio
    async def test_publishes_then_refreshes_current_center(self, controller, api, view):
        controller.sign_in(assertion())
        when = datetime(2026, 11, 2, 20, 30)

        task = asyncio.create_task(
            controller.submit_entry("Concierto", when, "Calle Mayor", b"img", "image/png")
        )
        await settle()
        assert api.list_calls == [MADRID]
        api.pending[0].set_result([make_entry("new")])
        entry = await task

        assert entry.id == "new"
        assert api.uploads == [(b"img", "image/png")]
        assert api.created == [
            dict(
                title="Concierto",
                rank=when,
                address="Calle Mayor",
                author_id="ana@example.com",
                media_url="http://cdn/media/image/1.jpg",
            )
        ]
        assert view.notices == [NOTICE_CREATED]
        assert [e.id for e in controller.displayed_entries] == ["new"]

    @pytest.mark.asyncio
    async def test_refresh_after_submit_loses_to_newer_search(self, controller, api, view):
        controller.sign_in(assertion())
        submit = asyncio.create_task(controller.submit_entry("Tapas", 4.0, "Calle Mayor", b"img"))
        await settle()
        search = asyncio.create_task(controller.search("Bilbao"))
        await settle()

        api.pending[1].set_result([make_entry("bilbao")])
        assert await search is True
        api.pending[0].set_result([make_entry("madrid")])
        await submit

        assert [e.id for e in controller.displayed_entries] == ["bilbao"]
        assert controller.last_queried_center == Coordinate(lat=43.263, lon=-2.935)
