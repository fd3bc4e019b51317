import io
import os
import gzip
import unittest

from tempfile import TemporaryDirectory

from atmfjstc.lib.gz_inspect import inspect_gz_archive, iter_gz_members, GZMemberFlags, GZHostOS, \
    GZEmptyArchiveError, GZFormatViolationError, GZEndOfStreamError, GZBadSignatureError, GZInspectError

from gz_samples import make_member, make_the_works_member, encode_extra, THE_WORKS_TEXT


class InspectArchiveTest(unittest.TestCase):
    def test_single_member(self):
        members = inspect_gz_archive(make_member(b'foo\n'))

        self.assertEqual(len(members), 1)
        self.assertEqual(members[0].decoded_data, b'foo\n')

    def test_two_members_of_different_configurations(self):
        first = make_member(b'first\n', host_os=0)
        second = make_member(
            b'second\n', text=True, mtime=1609459200, extra=encode_extra((b'x1', b'abcd')), name=b'second.txt',
            header_crc=True
        )

        members = inspect_gz_archive(first + second)

        self.assertEqual(len(members), 2)

        self.assertEqual(members[0].decoded_data, b'first\n')
        self.assertEqual(members[0].flags, GZMemberFlags())
        self.assertEqual(members[0].os, GZHostOS.FAT)
        self.assertIsNone(members[0].name)
        self.assertEqual(members[0].member_offset, 0)

        self.assertEqual(members[1].decoded_data, b'second\n')
        self.assertEqual(
            members[1].flags, GZMemberFlags(is_text=True, has_header_crc=True, has_extra=True, has_name=True)
        )
        self.assertEqual(members[1].os, GZHostOS.UNIX)
        self.assertEqual(members[1].name, 'second.txt')
        self.assertIsNone(members[1].comment)
        self.assertEqual(members[1].modification_time, '2021-01-01 00:00:00+00:00')
        self.assertEqual(members[1].member_offset, len(first))

    def test_member_order_preserved(self):
        contents = [f"part {i}\n".encode('ascii') for i in range(10)]

        members = inspect_gz_archive(b''.join(make_member(content) for content in contents))

        self.assertEqual([member.decoded_data for member in members], contents)
        self.assertEqual(b''.join(member.decoded_data for member in members), b''.join(contents))

    def test_stdlib_gzip_output(self):
        data = gzip.compress(b'hello world\n' * 50) + gzip.compress(b'bye\n')

        members = inspect_gz_archive(data)

        self.assertEqual(len(members), 2)
        self.assertEqual(members[0].decoded_data, b'hello world\n' * 50)
        self.assertEqual(members[0].uncompressed_size, 600)
        self.assertEqual(members[1].decoded_text, 'bye\n')

    def test_the_works(self):
        members = inspect_gz_archive(make_the_works_member())

        self.assertEqual(members[0].name, 'foo.bar')
        self.assertEqual(members[0].comment, 'no comment')
        self.assertEqual(members[0].decoded_data, THE_WORKS_TEXT)

    def test_empty_archive(self):
        with self.assertRaises(GZEmptyArchiveError) as ctx:
            inspect_gz_archive(b'')

        self.assertIsInstance(ctx.exception, GZFormatViolationError)

    def test_truncated_last_member(self):
        data = make_member(b'complete') + make_member(b'incomplete')[:-3]

        with self.assertRaises(GZEndOfStreamError) as ctx:
            inspect_gz_archive(data)

        self.assertEqual(ctx.exception.member_index, 1)

    def test_trailing_garbage(self):
        with self.assertRaises(GZBadSignatureError) as ctx:
            inspect_gz_archive(make_member(b'data') + b'\x00\x00\x00\x00')

        self.assertEqual(ctx.exception.member_index, 1)
        self.assertEqual(ctx.exception.found, b'\x00\x00')

    def test_not_gzip(self):
        with self.assertRaises(GZInspectError):
            inspect_gz_archive(b'This is plain text, not a GZip file')


class SourcesTest(unittest.TestCase):
    def test_path(self):
        with TemporaryDirectory() as temp_dir:
            path = os.path.join(temp_dir, 'test.gz')
            with open(path, 'wb') as f:
                f.write(make_member(b'one') + make_member(b'two'))

            members = inspect_gz_archive(path)

        self.assertEqual([member.decoded_data for member in members], [b'one', b'two'])

    def test_error_mentions_file_name(self):
        with TemporaryDirectory() as temp_dir:
            path = os.path.join(temp_dir, 'broken.gz')
            with open(path, 'wb') as f:
                f.write(make_member(b'data')[:5])

            with self.assertRaises(GZEndOfStreamError) as ctx:
                inspect_gz_archive(path)

        self.assertEqual(ctx.exception.source_name, path)
        self.assertIn('broken.gz', str(ctx.exception))

    def test_file_object_not_closed(self):
        fileobj = io.BytesIO(make_member(b'data'))

        inspect_gz_archive(fileobj)

        self.assertFalse(fileobj.closed)


class IterMembersTest(unittest.TestCase):
    def test_lazy(self):
        data = make_member(b'good') + b'garbage'

        members = iter_gz_members(data)

        self.assertEqual(next(members).decoded_data, b'good')

        with self.assertRaises(GZBadSignatureError):
            next(members)

    def test_buffer_size_validation(self):
        with self.assertRaises(ValueError):
            inspect_gz_archive(make_member(b'data'), buffer_size=0)


class AsDictTest(unittest.TestCase):
    def test_absent_fields_omitted(self):
        result = inspect_gz_archive(make_member(b'foo\n'))[0].as_dict()

        for field in ('modification_time', 'extra_fields', 'name', 'comment', 'header_crc16'):
            self.assertNotIn(field, result)

        self.assertEqual(result['os'], 'UNIX')
        self.assertEqual(result['compression_level_hint'], 'DEFAULT')
        self.assertEqual(result['decoded_text'], 'foo\n')
        self.assertEqual(result['raw_header']['id1'], 0x1f)
        self.assertFalse(result['flags']['has_name'])

    def test_present_fields(self):
        result = inspect_gz_archive(make_the_works_member())[0].as_dict()

        self.assertEqual(result['name'], 'foo.bar')
        self.assertEqual(result['comment'], 'no comment')
        self.assertEqual(result['extra_fields'], [dict(identifier='x1', payload=b'abcd')])
        self.assertIn('header_crc16', result)
        self.assertIn('modification_time', result)


if __name__ == '__main__':
    unittest.main()
