"""
# Blueprint PNG

Blueprints of the factory game are shared as PNG files: the picture is a
preview, the blueprint itself travels in an ancillary chunk. This package
contains

 1. a small framework to describe binary formats: a format is a Chunk whose
    class attributes are Fields, unpacked and packed in order of declaration
    (see core, fields, meta, properties and streams);
 2. the description of the PNG container on top of it (images.png);
 3. the code to find, extract, recombine and embed blueprints (blueprint);
 4. the decoder of the compact tables sent by the parser service (compact)
    and the reader of its event stream (events).

Two operations are defined for the format and its sub components:

 1. unpack(): read the binary data and build a high-level representation of
    that; the chunk itself knows how many bytes it needs to read.

 2. pack(): encode the high-level representation into binary data,
    recomputing the fields that depend on others (lengths, checksums).
"""
