import os
import tempfile
import unittest

import httpx
import pytest

from marketchat.application.commands.files import (
    UploadAttachmentCommand,
    UploadAttachmentHandler,
)
from marketchat.domain.exceptions import (
    AttachmentUploadError,
    PayloadTooLargeError,
    SendFailedError,
    UnsupportedMediaTypeError,
)
from marketchat.domain.value_objects.attachment import Attachment
from marketchat.domain.value_objects.handle import Handle
from marketchat.infrastructure.storage import LocalBlobStore, SupabaseBlobStore
from fakes import InMemoryBlobStore

OWNER = Handle("e" * 32)
MB = 1024 * 1024


def image(name="photo.png", content_type="image/png", size=2048):
    return Attachment(name, content_type, b"0" * size)


class UploadAttachmentTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.blobs = InMemoryBlobStore()
        self.handler = UploadAttachmentHandler(self.blobs)

    async def _upload(self, attachment):
        return await self.handler.execute(
            UploadAttachmentCommand(owner=OWNER, attachment=attachment)
        )

    async def test_object_is_stored_under_owner_handle(self):
        url = await self._upload(image())

        [path] = self.blobs.objects
        self.assertTrue(path.startswith(f"{OWNER.value}/"))
        self.assertTrue(path.endswith(".png"))
        self.assertEqual(url, f"https://blobs.test/chat_images/{path}")

    async def test_extension_follows_content_type_not_filename(self):
        await self._upload(image(name="innocent.html", content_type="image/jpeg"))

        [path] = self.blobs.objects
        self.assertTrue(path.endswith(".jpg"))

    async def test_content_type_parameters_are_accepted(self):
        await self._upload(image(content_type="image/webp; charset=binary"))

        [path] = self.blobs.objects
        self.assertTrue(path.endswith(".webp"))

    async def test_each_upload_gets_its_own_path(self):
        await self._upload(image())
        await self._upload(image())

        self.assertEqual(len(self.blobs.objects), 2)

    async def test_oversized_image_never_reaches_the_store(self):
        with self.assertRaises(PayloadTooLargeError) as ctx:
            await self._upload(image(size=6 * MB))

        self.assertEqual(ctx.exception.size, 6 * MB)
        self.assertEqual(self.blobs.objects, {})

    async def test_image_at_the_limit_is_accepted(self):
        await self._upload(image(size=5 * MB))
        self.assertEqual(len(self.blobs.objects), 1)

    async def test_non_image_type_never_reaches_the_store(self):
        for content_type in ("application/pdf", "text/html", "", "image/svg+xml"):
            with self.assertRaises(UnsupportedMediaTypeError):
                await self._upload(image(name="x.png", content_type=content_type))

        self.assertEqual(self.blobs.objects, {})

    async def test_store_failure_is_an_upload_error(self):
        self.blobs.fail = True

        with self.assertRaises(AttachmentUploadError) as ctx:
            await self._upload(image())

        self.assertIsInstance(ctx.exception, SendFailedError)

    async def test_missing_url_is_an_upload_error(self):
        self.blobs.return_empty_url = True

        with self.assertRaises(AttachmentUploadError):
            await self._upload(image())


class LocalBlobStoreTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.store = LocalBlobStore(
            upload_base=self._tmp.name, public_url="http://localhost:8000/media/"
        )

    async def asyncTearDown(self):
        self._tmp.cleanup()

    async def test_writes_file_and_returns_public_url(self):
        url = await self.store.put_object(f"{OWNER.value}/a.png", b"png-bytes", "image/png")

        self.assertEqual(url, f"http://localhost:8000/media/{OWNER.value}/a.png")
        with open(os.path.join(self._tmp.name, OWNER.value, "a.png"), "rb") as f:
            self.assertEqual(f.read(), b"png-bytes")

    async def test_traversal_is_rejected(self):
        for path in ("../escape.png", f"{OWNER.value}/../../x.png", "/abs.png", "a//b.png"):
            with self.assertRaises(ValueError):
                await self.store.put_object(path, b"x", "image/png")

        self.assertEqual(os.listdir(self._tmp.name), [])


class SupabaseBlobStoreTests(unittest.IsolatedAsyncioTestCase):
    def _store(self, handler):
        return SupabaseBlobStore(
            base_url="https://project.supabase.test/",
            service_key="service-role-key",
            bucket="chat_images",
            timeout=5,
            transport=httpx.MockTransport(handler),
        )

    async def test_uploads_to_bucket_and_returns_public_url(self):
        seen = {}

        def handler(request: httpx.Request):
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["type"] = request.headers["Content-Type"]
            seen["body"] = request.content
            return httpx.Response(200, json={"Key": "chat_images/a/b.png"})

        url = await self._store(handler).put_object("a/b.png", b"img", "image/png")

        self.assertEqual(seen["method"], "POST")
        self.assertEqual(
            seen["url"], "https://project.supabase.test/storage/v1/object/chat_images/a/b.png"
        )
        self.assertEqual(seen["auth"], "Bearer service-role-key")
        self.assertEqual(seen["type"], "image/png")
        self.assertEqual(seen["body"], b"img")
        self.assertEqual(
            url,
            "https://project.supabase.test/storage/v1/object/public/chat_images/a/b.png",
        )

    async def test_rejected_upload_raises(self):
        def handler(request):
            return httpx.Response(400, json={"error": "Duplicate"})

        with self.assertRaises(httpx.HTTPStatusError):
            await self._store(handler).put_object("a/b.png", b"img", "image/png")

    async def test_rejected_upload_surfaces_as_upload_error(self):
        def handler(request):
            return httpx.Response(503)

        handler_under_test = UploadAttachmentHandler(self._store(handler))
        with self.assertRaises(AttachmentUploadError):
            await handler_under_test.execute(
                UploadAttachmentCommand(owner=OWNER, attachment=image())
            )


@pytest.mark.parametrize(
    "name, expected",
    [("photo.PNG", "png"), ("archive.tar.gz", "gz"), ("noext", "")],
)
def test_attachment_extension(name, expected):
    assert Attachment(name, "image/png", b"").extension == expected
