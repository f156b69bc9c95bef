import asyncio
import base64
import json
import time
import unittest
from unittest.mock import MagicMock

import httpx
from botocore.exceptions import ClientError

from sightpath.exceptions import LabelDetectionError, SpeechSynthesisError, StorageError
from sightpath.services.font import CaptionFont
from sightpath.services.rekognition import RekognitionService
from sightpath.services.s3 import S3Service
from sightpath.services.tts import SpeechService, VoiceConfig


def client_error(operation):
    return ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, operation)


def slow_call(result=None, delay=0.3):
    def call(**kwargs):
        time.sleep(delay)
        return result
    return call


class TestS3Service(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.s3_client = MagicMock()

    def service(self, handler=None):
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler)) if handler else None
        return S3Service(
            bucket_name="test-bucket",
            region_name="ap-northeast-2",
            s3_client=self.s3_client,
            http_client=http_client,
        )

    async def test_put_uses_key_as_is(self):
        key = await self.service().put("street.jpg", b"data", content_type="image/jpeg")
        self.assertEqual("street.jpg", key)
        self.s3_client.put_object.assert_called_once_with(
            Bucket="test-bucket", Key="street.jpg", Body=b"data", ContentType="image/jpeg"
        )

    async def test_concurrent_puts_overlap(self):
        self.s3_client.put_object.side_effect = slow_call()
        service = self.service()

        started = time.perf_counter()
        await asyncio.gather(service.put("a.jpg", b"a"), service.put("b.jpg", b"b"))
        self.assertLess(time.perf_counter() - started, 0.5)
        self.assertEqual(2, self.s3_client.put_object.call_count)

    async def test_put_failure(self):
        self.s3_client.put_object.side_effect = client_error("PutObject")
        with self.assertRaises(StorageError):
            await self.service().put("street.jpg", b"data")

    def test_object_url(self):
        service = self.service()
        self.assertEqual("https://test-bucket.s3.amazonaws.com/my%20photo.jpg", service.object_url("my photo.jpg"))

    def test_object_url_override(self):
        service = S3Service("b", "r", s3_client=self.s3_client, public_base_url="http://localhost:9000/b/")
        self.assertEqual("http://localhost:9000/b/x.png", service.object_url("x.png"))

    async def test_fetch(self):
        def handler(request):
            self.assertEqual("/street.jpg", request.url.path)
            return httpx.Response(200, content=b"jpeg-bytes")

        service = self.service(handler)
        self.assertEqual(b"jpeg-bytes", await service.fetch(service.object_url("street.jpg")))

    async def test_fetch_missing_object(self):
        service = self.service(lambda request: httpx.Response(404))
        with self.assertRaises(StorageError):
            await service.fetch(service.object_url("missing.jpg"))


class TestRekognitionService(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.client = MagicMock()
        self.service = RekognitionService(bucket_name="test-bucket", region_name="ap-northeast-2",
                                          max_labels=7, client=self.client)

    async def test_detect_labels(self):
        self.client.detect_labels.return_value = {
            "Labels": [
                {
                    "Name": "Car",
                    "Confidence": 99.5,
                    "Instances": [
                        {"BoundingBox": {"Width": 0.1, "Height": 0.2, "Left": 0.3, "Top": 0.4}, "Confidence": 99.0}
                    ],
                    "Parents": [{"Name": "Vehicle"}],
                },
                {"Name": "Road", "Confidence": 80.0, "Instances": [], "Parents": []},
            ]
        }

        detections = await self.service.detect_labels("street.jpg")

        self.client.detect_labels.assert_called_once_with(
            Image={"S3Object": {"Bucket": "test-bucket", "Name": "street.jpg"}},
            MaxLabels=7,
        )
        self.assertEqual(["Car", "Road"], [d.name for d in detections])
        box = detections[0].instances[0].bounding_box
        self.assertEqual((0.3, 0.4, 0.1, 0.2), (box.left, box.top, box.width, box.height))
        self.assertEqual([], detections[1].instances)

    async def test_concurrent_calls_overlap(self):
        self.client.detect_labels.side_effect = slow_call({"Labels": []})

        started = time.perf_counter()
        results = await asyncio.gather(
            self.service.detect_labels("a.jpg"), self.service.detect_labels("b.jpg")
        )
        self.assertLess(time.perf_counter() - started, 0.5)
        self.assertEqual([[], []], results)

    async def test_no_labels(self):
        self.client.detect_labels.return_value = {"Labels": []}
        self.assertEqual([], await self.service.detect_labels("empty.jpg"))

    async def test_client_error(self):
        self.client.detect_labels.side_effect = client_error("DetectLabels")
        with self.assertRaises(LabelDetectionError):
            await self.service.detect_labels("street.jpg")

    async def test_malformed_payload(self):
        self.client.detect_labels.return_value = {"Labels": [{"Confidence": 50.0}]}
        with self.assertRaises(LabelDetectionError):
            await self.service.detect_labels("street.jpg")


class TestSpeechService(unittest.IsolatedAsyncioTestCase):
    def service(self, handler, api_key="tts-key"):
        return SpeechService(
            api_key=api_key,
            voice=VoiceConfig(),
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )

    async def test_synthesize(self):
        def handler(request):
            self.assertEqual("tts-key", request.url.params["key"])
            body = json.loads(request.content)
            self.assertEqual("전방에 Car 있습니다.", body["input"]["text"])
            self.assertEqual(
                {"languageCode": "ko-KR", "name": "ko-KR-Neural2-c", "ssmlGender": "MALE"}, body["voice"]
            )
            self.assertEqual({"audioEncoding": "MP3"}, body["audioConfig"])
            return httpx.Response(200, json={"audioContent": base64.b64encode(b"mp3-bytes").decode()})

        service = self.service(handler)
        self.assertEqual(b"mp3-bytes", await service.synthesize("전방에 Car 있습니다."))
        self.assertEqual("audio/mpeg", service.media_type)

    async def test_http_error(self):
        service = self.service(lambda request: httpx.Response(403, json={"error": "forbidden"}))
        with self.assertRaises(SpeechSynthesisError):
            await service.synthesize("hello")

    async def test_missing_audio_content(self):
        service = self.service(lambda request: httpx.Response(200, json={}))
        with self.assertRaises(SpeechSynthesisError):
            await service.synthesize("hello")

    async def test_missing_api_key(self):
        handler = MagicMock()
        service = self.service(handler, api_key=None)
        with self.assertRaises(SpeechSynthesisError):
            await service.synthesize("hello")
        handler.assert_not_called()


class TestCaptionFont(unittest.TestCase):
    def test_not_ready_until_loaded(self):
        font = CaptionFont()
        self.assertFalse(font.ready)
        self.assertIsNone(font.get())

    def test_default_font(self):
        font = CaptionFont()
        loaded = font.load(None, 32)
        self.assertIsNotNone(loaded)
        self.assertTrue(font.ready)
        self.assertIs(loaded, font.load(None, 32))

    def test_missing_file_stays_not_ready(self):
        font = CaptionFont()
        self.assertIsNone(font.load("/nonexistent/font.ttf", 32))
        self.assertFalse(font.ready)


if __name__ == '__main__':
    unittest.main()
