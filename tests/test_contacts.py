import pytest
from sqlalchemy import select

from app.core.exceptions import ConflictError, InvalidInputError, NotFoundError
from app.models.contact import Contact, ContactRequest
from app.services import contacts as contacts_service
from tests.conftest import create_user


async def test_accepting_a_request_links_both_users(db, alice, bob):
    request = await contacts_service.create_contact_request(db, alice.id, bob.id)
    assert request.status == "pending"
    assert request.requester_username == "alice"

    contact = await contacts_service.accept_contact_request(db, request.id, bob.id)
    assert contact.user_id == bob.id
    assert contact.contact_username == "alice"
    assert contact.contact_email == "alice@example.com"

    alice_contacts = await contacts_service.get_user_contacts(db, alice.id)
    assert [(c.contact_user_id, c.contact_username) for c in alice_contacts] == [(bob.id, "bob")]
    assert await contacts_service.are_contacts(db, bob.id, alice.id)


async def test_request_rules(db, alice, bob):
    with pytest.raises(InvalidInputError):
        await contacts_service.create_contact_request(db, alice.id, alice.id)

    request = await contacts_service.create_contact_request(db, alice.id, bob.id)
    with pytest.raises(ConflictError):
        await contacts_service.create_contact_request(db, alice.id, bob.id)

    with pytest.raises(NotFoundError):
        await contacts_service.accept_contact_request(db, request.id, alice.id)

    await contacts_service.accept_contact_request(db, request.id, bob.id)
    with pytest.raises(ConflictError):
        await contacts_service.create_contact_request(db, bob.id, alice.id)
    with pytest.raises(NotFoundError):
        await contacts_service.accept_contact_request(db, request.id, bob.id)


async def test_reject_request(db, alice, bob):
    request = await contacts_service.create_contact_request(db, alice.id, bob.id)
    await contacts_service.reject_contact_request(db, request.id, bob.id)

    assert await contacts_service.get_pending_contact_requests(db, bob.id) == []
    assert not await contacts_service.are_contacts(db, alice.id, bob.id)

    again = await contacts_service.create_contact_request(db, alice.id, bob.id)
    assert again.id != request.id


async def test_remove_contact_deletes_both_rows(db, alice, bob):
    request = await contacts_service.create_contact_request(db, alice.id, bob.id)
    contact = await contacts_service.accept_contact_request(db, request.id, bob.id)

    assert not await contacts_service.remove_contact(db, alice.id, contact.id)
    assert await contacts_service.remove_contact(db, bob.id, contact.id)

    result = await db.execute(select(Contact))
    assert result.scalars().all() == []


async def test_find_user_by_identifier(db, alice):
    assert (await contacts_service.find_user_by_identifier(db, "@Alice")).id == alice.id
    assert (await contacts_service.find_user_by_identifier(db, " ALICE@example.com ")).id == alice.id
    assert await contacts_service.find_user_by_identifier(db, "alic") is None


async def test_contact_endpoints(alice_client, bob_client, bob):
    response = await alice_client.post("/api/v1/contacts/requests", json={"username": "bob"})
    assert response.status_code == 201
    request_id = response.json()["id"]

    response = await alice_client.post("/api/v1/contacts/requests", json={"username": "bob"})
    assert response.status_code == 409

    response = await alice_client.post("/api/v1/contacts/requests", json={"username": "ghost"})
    assert response.status_code == 404

    response = await bob_client.get("/api/v1/contacts/requests")
    assert [request["requester_username"] for request in response.json()] == ["alice"]

    response = await bob_client.post(f"/api/v1/contacts/requests/{request_id}/accept")
    assert response.status_code == 200
    assert response.json()["contact_username"] == "alice"

    response = await alice_client.get("/api/v1/contacts/")
    contacts = response.json()
    assert [contact["contact_user_id"] for contact in contacts] == [bob.id]

    response = await alice_client.delete(f"/api/v1/contacts/{contacts[0]['id']}")
    assert response.status_code == 200
    response = await bob_client.get("/api/v1/contacts/")
    assert response.json() == []


async def test_crossed_requests_link_the_pair_once(db, alice, bob):
    from_alice = await contacts_service.create_contact_request(db, alice.id, bob.id)
    from_bob = await contacts_service.create_contact_request(db, bob.id, alice.id)

    contact = await contacts_service.accept_contact_request(db, from_alice.id, bob.id)

    assert await contacts_service.get_pending_contact_requests(db, alice.id) == []
    with pytest.raises(NotFoundError):
        await contacts_service.accept_contact_request(db, from_bob.id, alice.id)

    result = await db.execute(select(Contact.user_id, Contact.contact_user_id))
    assert sorted(tuple(row) for row in result.all()) == sorted([(alice.id, bob.id), (bob.id, alice.id)])

    assert await contacts_service.remove_contact(db, bob.id, contact.id)
    result = await db.execute(select(Contact))
    assert result.scalars().all() == []


async def test_accepting_when_already_linked_returns_existing_row(db, alice, bob):
    request = await contacts_service.create_contact_request(db, alice.id, bob.id)
    contact = await contacts_service.accept_contact_request(db, request.id, bob.id)

    # A request left pending from before the pair was linked
    stale = ContactRequest(
        requester_id=alice.id,
        requester_username=alice.username,
        requester_email=alice.email,
        recipient_id=bob.id,
        status="pending",
    )
    db.add(stale)
    await db.commit()

    again = await contacts_service.accept_contact_request(db, stale.id, bob.id)
    assert again.id == contact.id
    result = await db.execute(select(Contact))
    assert len(result.scalars().all()) == 2


async def test_contact_lookup_ignores_case(db, alice, bob, alice_client):
    assert (await contacts_service.find_user_by_username(db, "@BOB")).id == bob.id

    response = await alice_client.post("/api/v1/contacts/requests", json={"username": "Bob"})
    assert response.status_code == 201
    assert response.json()["recipient_id"] == bob.id

    response = await alice_client.get("/api/v1/users/search", params={"q": "BO"})
    assert [user["username"] for user in response.json()] == ["bob"]


async def test_user_search_treats_wildcards_literally(db, alice):
    await create_user(db, "a_b")
    await create_user(db, "axb")
    users = await contacts_service.search_users_by_username(db, "a_", alice.id)
    assert [user.username for user in users] == ["a_b"]
