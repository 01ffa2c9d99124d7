from agrigenius.services.navigation import View, ViewRouter


def test_defaults_to_dashboard():
    router = ViewRouter()

    assert router.active is View.DASHBOARD
    assert router.chat_open is False
    assert router.navigate("nonsense") is View.DASHBOARD


def test_navigation_runs_unmount_before_mount():
    events = []
    router = ViewRouter()
    for view in View:
        router.register(
            view,
            mount=lambda v=view: events.append(("mount", v.value)),
            unmount=lambda v=view: events.append(("unmount", v.value)),
        )

    router.start()
    router.navigate("weather")
    router.navigate(View.WEATHER)
    router.navigate(View.MARKET)
    router.close()

    assert events == [
        ("mount", "dashboard"),
        ("unmount", "dashboard"),
        ("mount", "weather"),
        ("unmount", "weather"),
        ("mount", "market"),
        ("unmount", "market"),
    ]


def test_toggle_chat_is_independent_of_view():
    router = ViewRouter(View.PROFILE)

    assert router.toggle_chat() is True
    router.navigate(View.MARKET)
    assert router.chat_open is True
    assert router.toggle_chat() is False
    assert router.to_dict() == {
        "active": "market",
        "chat_open": False,
        "views": ["dashboard", "weather", "market", "profile"],
    }
