import itertools
import threading
import unittest

from botocore.exceptions import ClientError

from s3_manager.populate import DEFAULT_WORKERS, ObjectPopulator, new_object_key
from s3_manager.services import S3BucketService


class FakePutClient:
    def __init__(self, failing_keys=()):
        self.failing_keys = set(failing_keys)
        self.put_calls = []
        self.threads = set()
        self._lock = threading.Lock()

    def put_object(self, **kwargs):
        with self._lock:
            self.put_calls.append((kwargs["Bucket"], kwargs["Key"], kwargs["Body"]))
            self.threads.add(threading.get_ident())
        if kwargs["Key"] in self.failing_keys:
            raise ClientError({"Error": {"Code": "SlowDown", "Message": "Slow down"}}, "PutObject")


def counting_keys():
    counter = itertools.count()
    lock = threading.Lock()

    def factory():
        with lock:
            return f"key-{next(counter):05d}"

    return factory


class ObjectPopulatorTests(unittest.TestCase):
    def test_each_worker_creates_requested_count(self):
        client = FakePutClient()
        populator = ObjectPopulator(S3BucketService(lambda *_, **__: client), workers=4, key_factory=counting_keys())

        report = populator.populate("bucket-one", 5)

        self.assertEqual(20, report.requested)
        self.assertEqual(20, report.created)
        self.assertEqual(0, report.failed)
        self.assertEqual(20, len({key for _, key, _ in client.put_calls}))

    def test_body_matches_key(self):
        client = FakePutClient()
        populator = ObjectPopulator(S3BucketService(lambda *_, **__: client), workers=1)

        populator.populate("bucket-one", 3)

        for bucket, key, body in client.put_calls:
            self.assertEqual("bucket-one", bucket)
            self.assertEqual(key.encode("utf-8"), body)

    def test_failures_are_counted_not_raised(self):
        client = FakePutClient(failing_keys={"key-00001"})
        populator = ObjectPopulator(
            S3BucketService(lambda *_, **__: client),
            workers=1,
            key_factory=counting_keys(),
        )

        with self.assertLogs("s3_manager.populate", level="WARNING"):
            report = populator.populate("bucket-one", 3)

        self.assertEqual(2, report.created)
        self.assertEqual(1, report.failed)
        self.assertEqual(3, len(client.put_calls))

    def test_zero_objects_is_a_no_op(self):
        client = FakePutClient()
        populator = ObjectPopulator(S3BucketService(lambda *_, **__: client))

        report = populator.populate("bucket-one", 0)

        self.assertEqual(0, report.created)
        self.assertEqual([], client.put_calls)

    def test_validates_arguments(self):
        client = FakePutClient()
        with self.assertRaises(ValueError):
            ObjectPopulator(S3BucketService(lambda *_, **__: client), workers=0)
        populator = ObjectPopulator(S3BucketService(lambda *_, **__: client))
        with self.assertRaises(ValueError):
            populator.populate("bucket-one", -1)
        with self.assertRaises(ValueError):
            populator.populate("bucket-one", 1_000_000)

    def test_defaults(self):
        populator = ObjectPopulator(S3BucketService(lambda *_, **__: FakePutClient()))

        self.assertEqual(16, DEFAULT_WORKERS)
        self.assertEqual(DEFAULT_WORKERS, populator.workers)
        self.assertEqual(36, len(new_object_key()))


if __name__ == "__main__":
    unittest.main()
