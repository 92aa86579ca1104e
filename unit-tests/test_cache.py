import threading
import time
from unittest import TestCase

from splunksecrets.cache import ConnectionCache


class TestConnectionCache(TestCase):
    def test_concurrent_get_or_create(self):
        cache = ConnectionCache()
        created = []
        thread_count = 16
        barrier = threading.Barrier(thread_count)

        def factory():
            created.append(1)
            time.sleep(0.05)
            return object()

        results = [None] * thread_count

        def worker(index):
            barrier.wait()
            results[index] = cache.get_or_create('config-1', factory)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(thread_count)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(5)

        self.assertEqual(len(created), 1)
        self.assertIsNotNone(results[0])
        self.assertTrue(all(x is results[0] for x in results))
        self.assertIs(cache.get('config-1'), results[0])

    def test_factory_failure(self):
        cache = ConnectionCache()
        with self.assertRaises(ValueError):
            cache.get_or_create('config-1', self._fail)
        self.assertIsNone(cache.get('config-1'))

        value = cache.get_or_create('config-1', lambda: 'connection')
        self.assertEqual(value, 'connection')

    def test_waiters_receive_factory_error(self):
        cache = ConnectionCache()
        started = threading.Event()
        release = threading.Event()

        def factory():
            started.set()
            release.wait(5)
            raise ValueError('login failed')

        errors = []

        def call():
            try:
                cache.get_or_create('config-1', factory)
            except ValueError as e:
                errors.append(e)

        owner = threading.Thread(target=call)
        owner.start()
        started.wait(5)
        waiter = threading.Thread(target=call)
        waiter.start()
        time.sleep(0.05)
        release.set()
        owner.join(5)
        waiter.join(5)

        self.assertEqual(len(errors), 2)
        self.assertIs(errors[0], errors[1])

    def test_unrelated_keys_do_not_wait(self):
        cache = ConnectionCache()
        started = threading.Event()
        release = threading.Event()

        def slow_factory():
            started.set()
            release.wait(5)
            return 'slow'

        t = threading.Thread(target=cache.get_or_create, args=('slow', slow_factory))
        t.start()
        try:
            self.assertTrue(started.wait(5))
            self.assertEqual(cache.get_or_create('fast', lambda: 'fast'), 'fast')
            self.assertIsNone(cache.get('slow'))
        finally:
            release.set()
            t.join(5)
        self.assertEqual(cache.get('slow'), 'slow')

    def test_invalidate(self):
        cache = ConnectionCache()
        cache.get_or_create('config-1', lambda: 'connection')
        self.assertEqual(cache.invalidate('config-1'), 'connection')
        self.assertIsNone(cache.invalidate('config-1'))
        self.assertIsNone(cache.invalidate('unknown'))
        self.assertEqual(len(cache), 0)

    def test_clear(self):
        cache = ConnectionCache()
        cache.get_or_create('a', lambda: 'A')
        cache.get_or_create('b', lambda: 'B')
        self.assertEqual(sorted(cache.keys()), ['a', 'b'])
        cache.clear()
        self.assertEqual(len(cache), 0)

    @staticmethod
    def _fail():
        raise ValueError('cannot connect')
