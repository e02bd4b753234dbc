"""Shipment lifecycle load test scenarios.

Stateful SequentialTaskSet journeys that drive a shipment the way the
parties do in production: the agent books and moves it, a driver works the
pickup and delivery assignments, the sender pays. Steps execute in order and
each depends on the previous step succeeding.
"""

import random

from locust import HttpUser, SequentialTaskSet, between, task

from loadtests.data_generators import (
    actor_id,
    booking_data,
    gateway_response,
    package_data,
    payment_data,
    tracking_event_data,
)
from loadtests.helpers.response import extract_error_detail, response_data
from loadtests.helpers.state import ShipmentState


def _new_state() -> ShipmentState:
    return ShipmentState(
        agent_id=actor_id("agent"),
        sender_id=actor_id("sender"),
        receiver_id=actor_id("receiver"),
        driver_id=actor_id("driver"),
    )


class _ShipmentJourney(SequentialTaskSet):
    """Shared request helpers for shipment journeys."""

    def on_start(self):
        self.state = _new_state()

    def book(self):
        payload = booking_data(self.state.sender_id, self.state.receiver_id, self.state.agent_id)
        with self.client.post(
            "/shipments",
            json=payload,
            headers=self.state.headers("agent"),
            catch_response=True,
            name="POST /shipments",
        ) as resp:
            if resp.status_code == 201:
                data = response_data(resp)
                self.state.shipment_id = data["shipment_id"]
                self.state.tracking_number = data["tracking_number"]
                self.state.package_ids = [p["package_id"] for p in data["packages"]]
            else:
                resp.failure(f"Booking failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    def move_to(self, status: str, role: str = "agent"):
        with self.client.put(
            f"/shipments/{self.state.shipment_id}/status",
            json={"status": status},
            headers=self.state.headers(role),
            catch_response=True,
            name="PUT /shipments/{id}/status",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Transition to {status} failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    def assign(self, assignment_type: str) -> str | None:
        with self.client.post(
            "/assignments",
            json={
                "shipment_id": self.state.shipment_id,
                "driver_id": self.state.driver_id,
                "assignment_type": assignment_type,
                "estimated_duration": random.randint(15, 120),
            },
            headers=self.state.headers("agent"),
            catch_response=True,
            name="POST /assignments",
        ) as resp:
            if resp.status_code == 201:
                return response_data(resp)["assignment_id"]
            resp.failure(f"Assignment failed: {resp.status_code}: {extract_error_detail(resp)}")
            self.interrupt()
        return None

    def work(self, assignment_id: str, action: str, body: dict | None = None):
        with self.client.put(
            f"/assignments/{assignment_id}/{action}",
            json=body,
            headers=self.state.headers("driver"),
            catch_response=True,
            name=f"PUT /assignments/{{id}}/{action}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Assignment {action} failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()


class ShipmentDeliveryJourney(_ShipmentJourney):
    """Book -> Pickup assignment -> Pickup -> Transit -> Delivery assignment -> Deliver -> Pay."""

    @task
    def book_shipment(self):
        self.book()

    @task
    def assign_pickup(self):
        self.state.pickup_assignment_id = self.assign("pickup")

    @task
    def driver_collects(self):
        self.work(self.state.pickup_assignment_id, "accept")
        self.work(self.state.pickup_assignment_id, "start")
        with self.client.put(
            f"/shipments/{self.state.shipment_id}/pickup",
            json={"photos": [f"pickup-{i}.jpg" for i in range(len(self.state.package_ids))]},
            headers=self.state.headers("driver"),
            catch_response=True,
            name="PUT /shipments/{id}/pickup",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Pickup failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()
        self.work(self.state.pickup_assignment_id, "complete")

    @task
    def line_haul(self):
        for status in ("received_at_agent", "in_transit", "arrived_at_hub", "in_transit", "arrived_at_destination"):
            self.move_to(status)

    @task
    def deliver(self):
        self.state.delivery_assignment_id = self.assign("delivery")
        self.work(self.state.delivery_assignment_id, "accept")
        self.work(self.state.delivery_assignment_id, "start")
        with self.client.put(
            f"/shipments/{self.state.shipment_id}/deliver",
            json={"delivery_type": "delivered", "signature": "Receiver"},
            headers=self.state.headers("driver"),
            catch_response=True,
            name="PUT /shipments/{id}/deliver",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Delivery failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()
        self.work(self.state.delivery_assignment_id, "complete")

    @task
    def pay(self):
        with self.client.post(
            "/payments",
            json=payment_data(self.state.shipment_id),
            headers=self.state.headers("sender"),
            catch_response=True,
            name="POST /payments",
        ) as resp:
            if resp.status_code != 201:
                resp.failure(f"Payment failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()
                return
            self.state.payment_id = response_data(resp)["payment_id"]

        with self.client.put(
            f"/payments/{self.state.payment_id}/complete",
            json={"gateway_response": gateway_response()},
            headers=self.state.headers("agent"),
            catch_response=True,
            name="PUT /payments/{id}/complete",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Payment completion failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class PackageEditJourney(_ShipmentJourney):
    """Book -> Add package -> Update package -> Photo -> Delete shipment."""

    @task
    def book_shipment(self):
        self.book()

    @task
    def add_package(self):
        with self.client.post(
            f"/shipments/{self.state.shipment_id}/packages",
            json=package_data(),
            headers=self.state.headers("sender"),
            catch_response=True,
            name="POST /shipments/{id}/packages",
        ) as resp:
            if resp.status_code == 201:
                self.state.package_ids.append(response_data(resp)["package_id"])
            else:
                resp.failure(f"Add package failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def update_package(self):
        package_id = random.choice(self.state.package_ids)
        with self.client.put(
            f"/shipments/{self.state.shipment_id}/packages/{package_id}",
            json={"weight": round(random.uniform(0.5, 20), 2)},
            headers=self.state.headers("sender"),
            catch_response=True,
            name="PUT /shipments/{id}/packages/{pid}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Update package failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def add_photo(self):
        package_id = random.choice(self.state.package_ids)
        with self.client.post(
            f"/shipments/{self.state.shipment_id}/packages/{package_id}/photos",
            json={"photo": f"{package_id}.jpg"},
            headers=self.state.headers("agent"),
            catch_response=True,
            name="POST /shipments/{id}/packages/{pid}/photos",
        ) as resp:
            if resp.status_code != 201:
                resp.failure(f"Add photo failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def delete_shipment(self):
        with self.client.delete(
            f"/shipments/{self.state.shipment_id}",
            headers=self.state.headers("sender"),
            catch_response=True,
            name="DELETE /shipments/{id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Delete failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class TrackingLookupJourney(_ShipmentJourney):
    """Book -> Record a failed attempt -> Public and authenticated lookups."""

    @task
    def book_shipment(self):
        self.book()

    @task
    def record_attempt(self):
        with self.client.post(
            f"/shipments/{self.state.shipment_id}/events",
            json=tracking_event_data(),
            headers=self.state.headers("agent"),
            catch_response=True,
            name="POST /shipments/{id}/events",
        ) as resp:
            if resp.status_code != 201:
                resp.failure(f"Record event failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def public_lookup(self):
        for _ in range(random.randint(1, 5)):
            with self.client.get(
                f"/track/{self.state.tracking_number}",
                catch_response=True,
                name="GET /track/{tracking_number}",
            ) as resp:
                if resp.status_code != 200:
                    resp.failure(f"Public tracking failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def receiver_lookup(self):
        with self.client.get(
            f"/shipments/{self.state.tracking_number}",
            headers=self.state.headers("receiver"),
            catch_response=True,
            name="GET /shipments/{tracking_number}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Receiver lookup failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class LogisticsUser(HttpUser):
    """Locust user simulating the parties around a shipment.

    Weighted task distribution:
    - 50% full delivery journey
    - 30% tracking lookups (read heavy)
    - 20% package edits and cancellations before pickup
    """

    wait_time = between(0.5, 2.0)
    tasks = {
        ShipmentDeliveryJourney: 5,
        TrackingLookupJourney: 3,
        PackageEditJourney: 2,
    }
