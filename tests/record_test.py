import random
import unittest

from marc_samples import CANONICAL, EMPTY_CODE, EMPTY_RECORD, FT, HELLO, OUT_OF_BOUNDS, RT, US
from marc21.constants import MAX_RECORD_LENGTH
from marc21.errors import (
    DirectoryMisalignedError,
    EmptySubfieldCodeError,
    FieldOutOfBoundsError,
    LeaderTooShortError,
    LengthMismatchError,
    RecordMisalignedError,
    TooLargeError,
)
from marc21.marc import ControlField, DataField, Leader, MalformedField, Record, SubField
from marc21.reader import decode_record
from marc21.writer import encode_record

VALUE_BYTES = bytes(range(0x20, 0xff))
CODES = 'abcdefghijklmnopqrstuvwxyz0123456789'


def random_record(rng: random.Random) -> Record:
    leader = Leader()
    leader.record_status = rng.choice('acdnp')
    leader.type_of_record = rng.choice('acdgijkmoprtz')
    leader.char_coding_scheme = rng.choice(' a')

    record = Record(leader)
    for _ in range(rng.randint(0, 12)):
        if rng.random() < 0.3:
            tag = f"00{rng.randint(1, 9)}"
            record.add_field(ControlField(tag, bytes(rng.choices(VALUE_BYTES, k=rng.randint(0, 40)))))
        else:
            tag = f"{rng.randint(10, 999):03d}"
            field = DataField(tag, rng.choice(' 0123456789'), rng.choice(' 0123456789'))
            for _ in range(rng.randint(0, 6)):
                field.add_subfield(rng.choice(CODES), bytes(rng.choices(VALUE_BYTES, k=rng.randint(0, 60))))
            record.add_field(field)
    return record


class TestSimple(unittest.TestCase):
    def test_record_leader(self):
        self.assertEqual(Record("01028nam0 2200277   450 ").leader.marshal(), b"01028nam0 2200277   450 ")

    def test_decode_control_field(self):
        record = decode_record(HELLO)
        self.assertEqual(record.fields, [ControlField('005', b"hello")])
        self.assertFalse(record.report)

    def test_decode_canonical(self):
        record = decode_record(CANONICAL)
        self.assertEqual(record.fields, [
            ControlField('001', b"ocm1"),
            DataField('245', '1', '0', [SubField('a', b"Title")]),
        ])
        self.assertEqual(record.leader.record_length, 65)
        self.assertEqual(record.leader.base_address_of_data, 49)

    def test_empty_record(self):
        encoded = encode_record(Record())
        self.assertEqual(len(encoded), 26)
        self.assertEqual(encoded, EMPTY_RECORD)
        self.assertEqual(decode_record(encoded).fields, [])


class TestRoundTrip(unittest.TestCase):
    def test_idempotent_on_canonical_records(self):
        for data in (HELLO, CANONICAL, EMPTY_RECORD):
            with self.subTest(data=data):
                self.assertEqual(encode_record(decode_record(data)), data)

    def test_generated_records(self):
        rng = random.Random(2709)
        for i in range(200):
            record = random_record(rng)
            with self.subTest(i=i):
                self.assertEqual(decode_record(encode_record(record)), record)

    def test_field_order_preserved(self):
        record = Record()
        record.add_field(DataField('245', '0', '0', [SubField('a', b"B")]),
                         ControlField('001', b"x"),
                         DataField('100', '1', ' ', [SubField('a', b"A")]),
                         DataField('245', '0', '0', [SubField('a', b"C")]))
        decoded = decode_record(encode_record(record))
        self.assertEqual([f.tag for f in decoded.fields], ['245', '001', '100', '245'])

    def test_encode_does_not_modify_record(self):
        record = Record()
        record.add_field(ControlField('001', b"x"))
        encode_record(record)
        self.assertEqual(record.leader.record_length, 0)
        self.assertEqual(record.leader.base_address_of_data, 0)

    def test_leader_content_survives(self):
        record = Record("00000cz  a2200000n  4500")
        decoded = decode_record(encode_record(record))
        self.assertEqual(decoded.leader.marshal()[5:12], b"cz  a22")
        self.assertEqual(decoded.leader.impl_defined2, 'n  ')

    def test_out_of_order_directory(self):
        # 245 data stored before 001 data
        data = (b"00065nam a2200049   4500" + b"001000500010" + b"245001000000" + FT
                + b"10" + US + b"aTitle" + FT + b"ocm1" + FT + RT)
        record = decode_record(data)
        self.assertEqual([f.tag for f in record.fields], ['001', '245'])
        self.assertEqual(record.fields[0], ControlField('001', b"ocm1"))
        self.assertEqual(encode_record(record), CANONICAL)


class TestSizeLimits(unittest.TestCase):
    def test_largest_record(self):
        # one 13-byte directory entry, since the field length needs five digits
        size = MAX_RECORD_LENGTH - 24 - 13 - 2
        record = Record()
        record.add_field(ControlField('001', b"x" * (size - 1)))

        encoded = encode_record(record)
        self.assertEqual(len(encoded), MAX_RECORD_LENGTH)
        self.assertEqual(encoded[20:24], b"5500")
        self.assertEqual(decode_record(encoded), record)

    def test_one_byte_too_large(self):
        size = MAX_RECORD_LENGTH - 24 - 13 - 2 + 1
        record = Record()
        record.add_field(ControlField('001', b"x" * (size - 1)))
        with self.assertRaises(TooLargeError):
            encode_record(record)

    def test_many_fields_too_large(self):
        record = Record()
        for _ in range(20):
            record.add_field(DataField('500', ' ', ' ', [SubField('a', b"y" * 5000)]))
        with self.assertRaises(TooLargeError):
            encode_record(record)

    def test_field_length_width_grows(self):
        record = Record()
        record.add_field(ControlField('001', b"x"), DataField('520', ' ', ' ', [SubField('a', b"z" * 10000)]))
        encoded = encode_record(record)
        self.assertEqual(decode_record(encoded).leader.entry_map.length_of_field_length, 5)
        self.assertEqual(decode_record(encoded), record)


class TestMalformed(unittest.TestCase):
    def test_field_past_data_region(self):
        record = decode_record(OUT_OF_BOUNDS)

        self.assertEqual(record.fields[0], ControlField('001', b"ocm1"))
        field = record.fields[1]
        self.assertIsInstance(field, MalformedField)
        self.assertIsInstance(field.error, FieldOutOfBoundsError)
        self.assertEqual(field.data, b"10" + US + b"aTitle" + FT)
        self.assertEqual(record.malformed_fields, [field])

        self.assertEqual(len(record.report), 1)
        diagnostic = record.report[0]
        self.assertEqual(diagnostic.kind, 'FieldOutOfBounds')
        self.assertEqual(diagnostic.stage, 'field')
        self.assertEqual(diagnostic.entry_index, 1)
        self.assertEqual(diagnostic.tag, '245')
        self.assertEqual(diagnostic.offset, 64)

    def test_bad_subfield_code(self):
        with self.assertLogs('marc21.reader', level='WARNING'):
            record = decode_record(EMPTY_CODE)

        self.assertEqual(record.fields[0], ControlField('001', b"ocm1"))
        self.assertIsInstance(record.fields[1].error, EmptySubfieldCodeError)
        self.assertEqual(record.report[0].offset, 49 + 5 + 2)

    def test_malformed_field_written_back(self):
        self.assertEqual(encode_record(decode_record(EMPTY_CODE)), EMPTY_CODE)

    def test_length_mismatch(self):
        with self.assertRaises(LengthMismatchError):
            decode_record(CANONICAL[:-1])

    def test_missing_record_terminator(self):
        with self.assertRaises(RecordMisalignedError):
            decode_record(CANONICAL[:-1] + FT)

    def test_base_address_before_directory_end(self):
        with self.assertRaises(RecordMisalignedError):
            decode_record(CANONICAL[:12] + b"00010" + CANONICAL[17:])

    def test_base_address_misses_directory_terminator(self):
        with self.assertRaises(DirectoryMisalignedError):
            decode_record(CANONICAL[:12] + b"00048" + CANONICAL[17:])

    def test_too_short(self):
        with self.assertRaises(LeaderTooShortError):
            decode_record(b"0002")


class TestRecordAccess(unittest.TestCase):
    def setUp(self):
        self.record = decode_record(CANONICAL)

    def test_getitem(self):
        self.assertEqual(self.record['245'], [DataField('245', '1', '0', [SubField('a', b"Title")])])
        self.assertIsNone(self.record['100'])

    def test_contains(self):
        self.assertIn('001', self.record)
        self.assertNotIn('100', self.record)

    def test_field_views(self):
        self.assertEqual([f.tag for f in self.record.get_control_fields()], ['001'])
        self.assertEqual([f.tag for f in self.record.get_data_fields()], ['245'])
        self.assertEqual(self.record.get_fields('001', '245'), self.record.fields)

    def test_sorted_views(self):
        self.record.add_field(DataField('100', '1', ' '))
        self.assertEqual([f.tag for f in self.record.get_data_fields(sorted=True)], ['100', '245'])
        self.assertEqual([f.tag for f in self.record.get_data_fields()], ['245', '100'])

    def test_remove_field(self):
        self.record.remove_field(self.record['001'][0])
        self.assertEqual([f.tag for f in self.record], ['245'])
        with self.assertRaises(ValueError):
            self.record.remove_field(ControlField('001', b"ocm1"))

    def test_equality_ignores_derived_leader_values(self):
        record = Record("00000nam a2200000   4500")
        record.add_field(ControlField('001', b"ocm1"), DataField('245', '1', '0', [SubField('a', b"Title")]))
        self.assertEqual(record, self.record)
        record.leader.record_status = 'c'
        self.assertNotEqual(record, self.record)

    def test_str(self):
        self.assertEqual(str(self.record), "=LDR  00065nam a2200049   4500\n=001  ocm1\n=245  10$aTitle")


if __name__ == '__main__':
    unittest.main()
