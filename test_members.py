from members import Member, decode_members, member_names


def test_decode_members_skips_bad_entries_and_duplicates():
    raw = [
        {"id": "A", "name": "Alice", "email": "alice@example.com"},
        {"name": "No Id"},
        "B",
        {"id": "  "},
        {"id": "A", "name": "Alice Again"},
        {"id": "C"},
    ]
    members = decode_members(raw)

    assert [m.member_id for m in members] == ["A", "C"]
    assert members[0].name == "Alice"
    assert members[1].name == ""


def test_decode_members_requires_a_list():
    assert decode_members(None) == []
    assert decode_members({"id": "A"}) == []


def test_member_names_fall_back_to_email_then_id():
    members = [Member("A", "Alice"), Member("B", email="bob@example.com"), Member("C")]
    assert member_names(members) == {"A": "Alice", "B": "bob@example.com", "C": "C"}


def test_member_round_trip():
    data = {"id": "A", "name": "Alice", "email": "alice@example.com"}
    assert Member.from_dict(data).to_dict() == data
