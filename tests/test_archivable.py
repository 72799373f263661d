import pytest

from macmessages.archivable import (
    ArchivableClass,
    ArchivableData,
    ArchivableError,
    ArchivableObject,
    ArchivablePlaceholder,
    ArchivableTypes,
    AttachmentMeta,
    Class,
    ComponentTypeKey,
    Type,
    TypeVariant,
    byte_to_type,
    get_attachment_meta_from_components,
    get_n_dictionary_objects,
    get_text_from_components,
    resolve_styles,
)
from macmessages.texteffect import Style


def nsstring(value, class_name="NSString"):
    return ArchivableObject(Class(class_name, 1), [(TypeVariant.UTF8_STRING, value)])


def nsdouble(value):
    return ArchivableObject(Class("NSNumber", 0), [(TypeVariant.DOUBLE, value)])


def nsint(value):
    return ArchivableObject(Class("NSNumber", 0), [(TypeVariant.SIGNED_INT, value)])


def range_data(start, length):
    return ArchivableData([(TypeVariant.SIGNED_INT, start), (TypeVariant.UNSIGNED_INT, length)])


@pytest.mark.parametrize(
    "value, variant",
    [
        (0x40, TypeVariant.OBJECT),
        (0x2B, TypeVariant.UTF8_STRING),
        (0x2A, TypeVariant.EMBEDDED_DATA),
        (0x66, TypeVariant.FLOAT),
        (0x64, TypeVariant.DOUBLE),
        (ord("i"), TypeVariant.SIGNED_INT),
        (ord("q"), TypeVariant.SIGNED_INT),
        (ord("I"), TypeVariant.UNSIGNED_INT),
        (ord("Q"), TypeVariant.UNSIGNED_INT),
    ],
)
def test_byte_to_type_known(value, variant):
    assert byte_to_type(value) == Type(variant)


def test_byte_to_type_unknown_keeps_byte():
    result = byte_to_type(0x7A)
    assert result.variant is TypeVariant.UNKNOWN
    assert result.unknown_value == 0x7A


def test_nsstring_and_mutable_string():
    assert nsstring("hello").as_nsstring() == "hello"
    assert nsstring("hello", "NSMutableString").as_nsstring() == "hello"
    assert nsstring("hello", "NSNumber").as_nsstring() is None


def test_nsnumber_readers_respect_wire_type():
    assert nsdouble(2.5).as_nsnumber_float() == 2.5
    assert nsdouble(2.5).as_nsnumber_int() is None
    assert nsint(7).as_nsnumber_int() == 7
    assert nsint(7).as_nsnumber_float() is None
    assert nsstring("7").as_nsnumber_int() is None


def test_dictionary_length_counts_keys_and_values():
    dictionary = ArchivableObject(Class("NSDictionary", 0), [(TypeVariant.SIGNED_INT, 3)])
    assert dictionary.get_dictionary_length() == 6
    assert ArchivableObject(Class("NSDictionary", 0)).get_dictionary_length() == 0
    assert nsint(3).get_dictionary_length() == 0
    assert range_data(0, 4).get_dictionary_length() == 0


def test_object_has_no_range():
    assert nsstring("x").get_range() is None


def test_data_range():
    assert range_data(0, 5).get_range() == (0, 5)
    swapped = ArchivableData([(TypeVariant.UNSIGNED_INT, 0), (TypeVariant.SIGNED_INT, 5)])
    assert swapped.get_range() is None
    three = ArchivableData([(TypeVariant.SIGNED_INT, 0)] * 3)
    assert three.get_range() is None


def test_data_string_is_none_and_numbers_raise():
    data = range_data(1, 2)
    assert data.as_nsstring() is None
    with pytest.raises(ArchivableError):
        data.as_nsnumber_float()
    with pytest.raises(ArchivableError):
        data.as_nsnumber_int()


def test_internal_entry_has_no_string():
    for archivable in (
        ArchivablePlaceholder(),
        ArchivableTypes([Type(TypeVariant.OBJECT)]),
        ArchivableClass(Class("NSObject", 0)),
    ):
        with pytest.raises(ArchivableError):
            archivable.as_nsstring()


def test_internal_entry_has_no_float():
    for archivable in (
        ArchivablePlaceholder(),
        ArchivableTypes([Type(TypeVariant.OBJECT)]),
        ArchivableClass(Class("NSObject", 0)),
    ):
        with pytest.raises(ArchivableError):
            archivable.as_nsnumber_float()


def test_internal_entry_has_no_int():
    for archivable in (
        ArchivablePlaceholder(),
        ArchivableTypes([Type(TypeVariant.OBJECT)]),
        ArchivableClass(Class("NSObject", 0)),
    ):
        with pytest.raises(ArchivableError):
            archivable.as_nsnumber_int()


def test_internal_entry_has_no_range():
    for archivable in (
        ArchivablePlaceholder(),
        ArchivableTypes([Type(TypeVariant.OBJECT)]),
        ArchivableClass(Class("NSObject", 0)),
    ):
        with pytest.raises(ArchivableError):
            archivable.get_range()


def test_internal_entry_has_no_dictionary_length():
    for archivable in (
        ArchivablePlaceholder(),
        ArchivableTypes([Type(TypeVariant.OBJECT)]),
        ArchivableClass(Class("NSObject", 0)),
    ):
        with pytest.raises(ArchivableError):
            archivable.get_dictionary_length()


def test_get_text_from_components():
    assert get_text_from_components([]) is None
    assert get_text_from_components([nsstring("body"), nsstring("other")]) == "body"
    assert get_text_from_components([range_data(0, 1)]) is None


def test_get_n_dictionary_objects_zero_count():
    assert get_n_dictionary_objects([nsstring("a")], 0, 0) == []


def test_get_n_dictionary_objects_stops_at_range():
    first, second = nsstring("a"), nsstring("b")
    components = [first, second, range_data(0, 1), nsstring("c")]
    assert get_n_dictionary_objects(components, 0, 5) == [first, second]


def test_get_n_dictionary_objects_range_first_takes_count_plus_one():
    components = [range_data(0, 1), nsstring("x")]
    assert get_n_dictionary_objects(components, 0, 1) == components


def test_get_n_dictionary_objects_out_of_range():
    with pytest.raises(ArchivableError):
        get_n_dictionary_objects([range_data(0, 1)], 0, 3)


def test_resolve_styles():
    components = [
        nsstring(ComponentTypeKey.TEXT_BOLD_ATTRIBUTE_NAME.value),
        nsint(1),
        nsstring("unrelated"),
        range_data(0, 2),
        nsstring(ComponentTypeKey.TEXT_ITALIC_ATTRIBUTE_NAME.value),
        nsstring(ComponentTypeKey.TEXT_STRIKETHROUGH_ATTRIBUTE_NAME.value),
        nsstring(ComponentTypeKey.TEXT_UNDERLINE_ATTRIBUTE_NAME.value),
    ]
    assert resolve_styles(components) == [
        Style.BOLD,
        Style.ITALIC,
        Style.STRIKETHROUGH,
        Style.UNDERLINE,
    ]


def test_resolve_styles_none_found():
    assert resolve_styles([nsstring("plain"), nsint(2)]) == []


def test_attachment_meta_from_components():
    components = [
        nsstring(ComponentTypeKey.FILE_TRANSFER_GUID_ATTRIBUTE_NAME.value),
        nsstring("at_0_ABC"),
        nsstring(ComponentTypeKey.INLINE_MEDIA_HEIGHT_ATTRIBUTE_NAME.value),
        nsdouble(480.0),
        nsstring(ComponentTypeKey.INLINE_MEDIA_WIDTH_ATTRIBUTE_NAME.value),
        nsdouble(640.0),
        nsstring(ComponentTypeKey.FILENAME_ATTRIBUTE_NAME.value),
        nsstring("photo.jpg"),
        nsstring(ComponentTypeKey.AUDIO_TRANSCRIPTION.value),
        nsstring("hi there"),
    ]
    assert get_attachment_meta_from_components(components) == AttachmentMeta(
        guid="at_0_ABC",
        transcription="hi there",
        height=480.0,
        width=640.0,
        name="photo.jpg",
    )


def test_attachment_meta_key_without_value():
    components = [nsstring("ignored"), nsstring(ComponentTypeKey.FILENAME_ATTRIBUTE_NAME.value)]
    assert get_attachment_meta_from_components(components) is None


def test_attachment_meta_without_keys_is_empty():
    assert get_attachment_meta_from_components([nsstring("a"), nsint(1)]) == AttachmentMeta()


def test_component_key_lookup():
    assert ComponentTypeKey.lookup("__kIMLinkAttributeName") is ComponentTypeKey.LINK_ATTRIBUTE_NAME
    assert ComponentTypeKey.lookup("nothing") is None


def test_type_str():
    assert str(Type(TypeVariant.UNKNOWN, unknown_value=0x7A)) == (
        'Type (9) { StringValue "", ArraySize 0, UnknownValue 7a }'
    )