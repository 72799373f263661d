# macmessages

Decoders for the binary payloads that the macOS Messages app stores in the
rows of its `chat.db` database. Give it the bytes of a column and it hands
back plain Python objects.

## Modules

- `macmessages.typedstream`: decodes an `attributedBody` value, an Apple
  typedstream archive, into a list of archivable components.
  `decode_typed_stream_components(encoded)` does the whole job and raises
  `TypedStreamError` when the bytes cannot be decoded; the error message
  ends with a hex dump of the input. `TypedStreamDecoder` offers the same
  through `decode_components()` and `dump()`.
- `macmessages.archivable`: the component classes the decoder produces
  (`ArchivableObject`, `ArchivableData`, `ArchivableClass`,
  `ArchivablePlaceholder`, `ArchivableTypes`) and helpers that read from
  them: `get_text_from_components`, `resolve_styles`,
  `get_attachment_meta_from_components` and `get_n_dictionary_objects`.
  Decoded values are kept as `(TypeVariant, value)` pairs in
  `output_data`. Reading a value as something it cannot be raises
  `ArchivableError`.
- `macmessages.components`: groups decoded components into message parts,
  `CombinedComponentAttachment` and `CombinedComponentText` (a list of
  `TextRangeEffect`s), with `convert_archivables_to_combined_components`.
  `CombinedComponentRetraction` stands for an unsent part.
- `macmessages.edited`: reads a `message_summary_info` plist with
  `edited_message_parts_from_message_summary_info` and returns one
  `EditedMessagePart` per original part, each with an
  `EditedMessageStatus` (`EDITED`, `UNSENT` or `ORIGINAL`) and its
  `EditedEvent` history. Malformed input raises `EditedMessageError`.
- `macmessages.texteffect`: text effects (styles, links, mentions,
  animations, conversions, one-time codes) and their HTML rendering with
  `format_text_range_effects_on_text` and `apply_text_range_effect_to_text`.
  Text is HTML-escaped first. Mentions are rendered through
  `get_mention_text` with the placeholder user and server `temp`.
- `macmessages.queries`: the `ItemType` and `GroupActionType` codes used in
  the message table.
- `macmessages.utilities`: `make_messages_portal_id`, `run_osascript`,
  `get_image_from_vcard`, `full_name`, `replace_home_directory`, `dump`
  (xxd-style hex lines), `humanize_duration`, `date_time_diff` and
  `get_mention_text`, plus the `APPLE_EPOCH` constants.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Example

```python
from macmessages.typedstream import decode_typed_stream_components
from macmessages.archivable import get_text_from_components
from macmessages.components import convert_archivables_to_combined_components

components = decode_typed_stream_components(attributed_body)
text = get_text_from_components(components)
if text is not None:
    parts = convert_archivables_to_combined_components(components, text)
```

Edit history of a message:

```python
from macmessages.edited import edited_message_parts_from_message_summary_info

for part in edited_message_parts_from_message_summary_info(summary_info):
    print(part.status, len(part.edit_history))
```

## What it does not do

The package works on bytes you have already read. It does not open or
query `chat.db` or the Contacts databases, does not watch the database for
new messages, and does not relay messages, receipts or contacts to any chat
network. It has no command-line program.

`run_osascript` runs AppleScript through the system `osascript` command
and so works only on macOS; it raises `OsascriptError` when the command
cannot be started or exits with a non-zero status. Everything else is pure
Python and works on any platform.