"""
Webhook endpoint tests: wire format, session lifecycle, and locale isolation.
"""

from concurrent.futures import ThreadPoolExecutor

from transactions.models import ConversationRequest


def turn(session_id, intent, locale="en-US", arguments=None):
    return {
        "session_id": session_id,
        "intent": intent,
        "user": {"locale": locale},
        "arguments": arguments or {},
    }


class TestEndpoint:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "locales": ["en-US", "ja-JP"]}

    def test_ask_wire_format(self, client):
        response = client.post("/webhook", json=turn("s1", "transaction_check_action"))
        assert response.status_code == 200
        body = response.json()
        assert body["action"] == "ask"
        assert body["expect_user_response"] is True
        (payload,) = body["payloads"]
        assert payload["kind"] == "transaction_requirements"
        assert payload["intent"] == "actions.intent.TRANSACTION_REQUIREMENTS_CHECK"
        assert payload["@type"] == "type.googleapis.com/google.actions.v2.TransactionRequirementsCheckSpec"
        assert payload["orderOptions"] == {"requestDeliveryAddress": False}
        assert payload["paymentOptions"] == {
            "actionProvidedOptions": {"paymentType": "PAYMENT_CARD", "displayName": "VISA-1234"}
        }

    def test_close_wire_format(self, client, en):
        response = client.post("/webhook", json=turn("s1", "transaction_check_complete"))
        body = response.json()
        assert body["action"] == "close"
        assert body["expect_user_response"] is False
        assert body["payloads"] == [{"kind": "simple_response", "text": en("transaction_check_complete_failed")}]

    def test_unhandled_intent(self, client):
        response = client.post("/webhook", json=turn("s1", "nonexistent_intent"))
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "unhandled_intent"
        assert body["intent"] == "nonexistent_intent"

    def test_malformed_body(self, client):
        response = client.post("/webhook", json={"intent": "delivery_address"})
        assert response.status_code == 422

    def test_missing_locale_uses_default(self, client, en):
        payload = {"session_id": "s1", "intent": "delivery_address"}
        body = client.post("/webhook", json=payload).json()
        assert body["payloads"][0]["addressOptions"]["reason"] == en("delivery_address")


class TestSessionFlow:
    def test_address_flows_into_order(self, client, accepted_address_args, postal_address):
        first = client.post("/webhook", json=turn("s1", "delivery_address_complete", arguments=accepted_address_args))
        assert first.json()["action"] == "ask"

        stored = client.get("/api/sessions/s1").json()
        assert stored["conversation_data"]["deliveryAddress"]["postalAddress"] == postal_address

        body = client.post("/webhook", json=turn("s1", "transaction_decision_action")).json()
        order = body["payloads"][0]["proposedOrder"]
        assert order["extension"]["locations"][0]["location"]["postalAddress"] == postal_address
        assert order["totalPrice"] == {"type": "ESTIMATE", "amount": {"currencyCode": "USD", "units": 35, "nanos": 0}}

    def test_partial_address_round_trips_unchanged(self, client):
        partial = {"regionCode": "JP", "postalCode": "100-0001", "locality": "Chiyoda", "addressLines": ["1-1"]}
        arguments = {"DELIVERY_ADDRESS_VALUE": {"userDecision": "ACCEPTED", "location": {"postalAddress": partial}}}
        client.post("/webhook", json=turn("s1", "delivery_address_complete", arguments=arguments))

        stored = client.get("/api/sessions/s1").json()["conversation_data"]["deliveryAddress"]
        assert stored == {"postalAddress": partial}

        body = client.post("/webhook", json=turn("s1", "transaction_decision_action")).json()
        extension = body["payloads"][0]["proposedOrder"]["extension"]
        assert extension["locations"][0]["location"]["postalAddress"] == partial

    def test_other_session_sees_no_address(self, client, accepted_address_args):
        client.post("/webhook", json=turn("s1", "delivery_address_complete", arguments=accepted_address_args))
        body = client.post("/webhook", json=turn("s2", "transaction_decision_action")).json()
        assert "extension" not in body["payloads"][0]["proposedOrder"]

    def test_close_clears_session(self, client, accepted_address_args):
        client.post("/webhook", json=turn("s1", "delivery_address_complete", arguments=accepted_address_args))
        body = client.post("/webhook", json=turn("s1", "transaction_decision_complete")).json()
        assert body["action"] == "close"
        assert body["conversation_data"] == {}
        assert client.get("/api/sessions/s1").json()["conversation_data"] == {}

    def test_unhandled_intent_keeps_session(self, client, accepted_address_args):
        client.post("/webhook", json=turn("s1", "delivery_address_complete", arguments=accepted_address_args))
        client.post("/webhook", json=turn("s1", "nonexistent_intent"))
        assert "deliveryAddress" in client.get("/api/sessions/s1").json()["conversation_data"]

    def test_delete_session(self, client, accepted_address_args):
        client.post("/webhook", json=turn("s1", "delivery_address_complete", arguments=accepted_address_args))
        assert client.delete("/api/sessions/s1").json() == {"session_id": "s1", "deleted": True}
        assert client.delete("/api/sessions/s1").json() == {"session_id": "s1", "deleted": False}

    def test_order_accepted(self, client):
        arguments = {
            "TRANSACTION_DECISION_VALUE": {
                "userDecision": "ORDER_ACCEPTED",
                "order": {"finalOrder": {"id": "final-42"}},
            }
        }
        body = client.post("/webhook", json=turn("s1", "transaction_decision_complete", arguments=arguments)).json()
        update = body["payloads"][0]
        assert update["kind"] == "order_update"
        assert update["actionOrderId"] == "final-42"
        assert update["receipt"] == {"confirmedActionOrderId": "<UNIQUE_ORDER_ID>"}
        assert update["orderManagementActions"][0]["button"]["openUrlAction"] == {
            "url": "http://example.com/customer-service"
        }


class TestLocaleIsolation:
    def test_interleaved_requests(self, client, en, ja):
        ja_body = client.post("/webhook", json=turn("s-ja", "delivery_address", locale="ja-JP")).json()
        en_body = client.post("/webhook", json=turn("s-en", "delivery_address", locale="en-US")).json()
        again = client.post("/webhook", json=turn("s-ja", "delivery_address", locale="ja-JP")).json()
        assert ja_body["payloads"][0]["addressOptions"]["reason"] == ja("delivery_address")
        assert en_body["payloads"][0]["addressOptions"]["reason"] == en("delivery_address")
        assert again == ja_body

    def test_concurrent_turns(self, webhook, en, ja):
        expected = {"ja-JP": ja("transaction_check_complete"), "en-US": en("transaction_check_complete")}
        arguments = {"TRANSACTION_REQUIREMENTS_CHECK_RESULT": {"resultType": "OK"}}
        requests = [
            ConversationRequest(
                session_id=f"s{index}",
                intent="transaction_check_complete",
                user={"locale": "ja-JP" if index % 2 else "en-US"},
                arguments=arguments,
            )
            for index in range(64)
        ]
        with ThreadPoolExecutor(max_workers=8) as pool:
            responses = list(pool.map(webhook.handle, requests))
        for request, response in zip(requests, responses):
            assert response.texts() == [expected[request.user.locale]]
