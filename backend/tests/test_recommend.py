import unittest

from backend.app.models import Section
from backend.app.recommend import rank_sections

from seating_testcase import SeatingTestCase


class TestRankSections(unittest.TestCase):
    def test_descending_weight_stable_on_ties(self):
        sections = [Section(id=i, venue_id=1, name=n, capacity=10) for i, n in enumerate("ABCD", start=1)]
        ranked = rank_sections(sections, {3: 5, 2: 1, 4: 1})
        self.assertEqual([s.name for s in ranked], ["C", "B", "D", "A"])

    def test_missing_weights_default_to_zero(self):
        sections = [Section(id=i, venue_id=1, name=n, capacity=10) for i, n in enumerate("AB", start=1)]
        self.assertEqual([s.name for s in rank_sections(sections, {})], ["A", "B"])
        self.assertEqual([s.name for s in rank_sections(sections, {2: -1})], ["A", "B"])


class TestRecommendSeat(SeatingTestCase):
    def setUp(self):
        super().setUp()
        self.venue = self.build_venue(section_names=("A", "B", "C"), rows=1, seats=2)
        self.event = self.make_event(self.venue)
        by_name = {s.name: s for s in self.svc.sections.sections_by_venue(self.venue.id)}
        self.a, self.b, self.c = by_name["A"], by_name["B"], by_name["C"]
        self.customer = self.make_customer({self.a.id: 5, self.b.id: 3, self.c.id: 1})

    def _section_of(self, seat):
        return self.svc.rows.get_row(seat.row_id).section_id

    def _fill(self, section):
        buyer = self.make_customer(username="buyer")
        for seat in self.svc.sections.available_seats_in_section(section.id, self.event.id):
            self.svc.seats.reserve(seat.id, self.event, buyer, 10.0)

    def test_prefers_highest_weight(self):
        seat = self.svc.recommendations.recommend_seat(self.customer, self.venue, self.event)
        self.assertEqual(self._section_of(seat), self.a.id)

    def test_falls_back_in_preference_order(self):
        self._fill(self.a)
        seat = self.svc.recommendations.recommend_seat(self.customer, self.venue, self.event)
        self.assertEqual(self._section_of(seat), self.b.id)

        buyer = self.make_customer(username="another")
        self.svc.seats.reserve(seat.id, self.event, buyer, 10.0)
        seat = self.svc.recommendations.recommend_seat(self.customer, self.venue, self.event)
        self.assertEqual(self._section_of(seat), self.b.id)

        self._fill(self.b)
        seat = self.svc.recommendations.recommend_seat(self.customer, self.venue, self.event)
        self.assertEqual(self._section_of(seat), self.c.id)

    def test_exhausted_venue(self):
        for section in (self.a, self.b, self.c):
            self._fill(section)
        self.assertIsNone(self.svc.recommendations.recommend_seat(self.customer, self.venue, self.event))

    def test_other_event_reservations_ignored(self):
        self._fill(self.a)
        encore = self.make_event(self.venue, name="Encore")
        seat = self.svc.recommendations.recommend_seat(self.customer, self.venue, encore)
        self.assertEqual(self._section_of(seat), self.a.id)

    def test_without_preferences_uses_venue_order(self):
        self._fill(self.a)
        seat = self.svc.recommendations.recommend_seat(None, self.venue, self.event)
        self.assertEqual(self._section_of(seat), self.b.id)

    def test_missing_venue_or_event(self):
        self.assertIsNone(self.svc.recommendations.recommend_seat(self.customer, None, self.event))
        self.assertIsNone(self.svc.recommendations.recommend_seat(self.customer, self.venue, None))

    def test_is_read_only(self):
        before = len(self.svc.repos.reservations.get_all())
        self.svc.recommendations.recommend_seat(self.customer, self.venue, self.event)
        self.assertEqual(len(self.svc.repos.reservations.get_all()), before)


if __name__ == "__main__":
    unittest.main()
