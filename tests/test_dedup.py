import threading
import unittest

from wikiloop_game.dedup import ServedSet


class ServedSetTests(unittest.TestCase):
    def test_mark_served(self) -> None:
        served = ServedSet()
        self.assertTrue(served.is_new("Q1"))
        served.mark_served("Q1")
        self.assertFalse(served.is_new("Q1"))
        self.assertEqual(served.snapshot(), frozenset({"Q1"}))

    def test_claim_only_once(self) -> None:
        served = ServedSet()
        self.assertTrue(served.claim("Q1"))
        self.assertFalse(served.claim("Q1"))
        self.assertEqual(len(served), 1)

    def test_concurrent_claims_hand_out_each_id_once(self) -> None:
        served = ServedSet()
        ids = [f"Q{i}" for i in range(1, 201)]
        winners = []
        winners_lock = threading.Lock()
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            for qid in ids:
                if served.claim(qid):
                    with winners_lock:
                        winners.append(qid)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertEqual(sorted(winners), sorted(ids))

    def test_rollover_clears_on_new_epoch(self) -> None:
        served = ServedSet()
        served.rollover("20190801")
        served.mark_served("Q1")
        served.rollover("20190801")
        self.assertFalse(served.is_new("Q1"))
        served.rollover("20191001")
        self.assertTrue(served.is_new("Q1"))


if __name__ == "__main__":
    unittest.main()
