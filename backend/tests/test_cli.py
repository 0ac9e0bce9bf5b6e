import argparse

import pytest

from opportunity_hub.cli import build_parser


def test_create_coupon_defaults_to_one_use_per_user() -> None:
    args = build_parser().parse_args(["create-coupon", "--code", "save500", "--discount", "500"])
    assert args.max_uses_per_user == 1
    assert args.max_uses is None


def test_create_coupon_can_drop_the_per_user_limit() -> None:
    args = build_parser().parse_args(
        ["create-coupon", "--code", "open", "--discount", "100", "--unlimited-per-user"]
    )
    assert args.max_uses_per_user is None


def test_create_coupon_rejects_conflicting_per_user_flags() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args(
            [
                "create-coupon",
                "--code",
                "open",
                "--discount",
                "100",
                "--max-uses-per-user",
                "2",
                "--unlimited-per-user",
            ]
        )


def test_create_coupon_requires_an_aware_expiry() -> None:
    parser = build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["create-coupon", "--code", "x", "--discount", "1", "--expires-at", "2030-01-01T00:00:00"])
    args = parser.parse_args(
        ["create-coupon", "--code", "x", "--discount", "1", "--expires-at", "2030-01-01T00:00:00+05:30"]
    )
    assert args.expires_at.utcoffset() is not None
    assert isinstance(parser, argparse.ArgumentParser)
