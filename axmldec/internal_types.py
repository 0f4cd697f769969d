# Res_value data types
# see http://aospxref.com/android-13.0.0_r3/xref/frameworks/base/libs/androidfw/include/androidfw/ResourceTypes.h#266

# The 'data' is either 0 or 1, specifying this resource is either undefined or empty
TYPE_NULL = 0x00
# The 'data' holds a ResTable_ref, a reference to another resource table entry
TYPE_REFERENCE = 0x01
# The 'data' holds an attribute resource identifier
TYPE_ATTRIBUTE = 0x02
# The 'data' holds an index into the containing resource table's global value string pool
TYPE_STRING = 0x03
# The 'data' holds a single-precision floating point number
TYPE_FLOAT = 0x04
# The 'data' holds a complex number encoding a dimension value, such as "100in"
TYPE_DIMENSION = 0x05
# The 'data' holds a complex number encoding a fraction of a container
TYPE_FRACTION = 0x06
TYPE_DYNAMIC_REFERENCE = 0x07
TYPE_DYNAMIC_ATTRIBUTE = 0x08

TYPE_FIRST_INT = 0x10
TYPE_INT_DEC = 0x10
TYPE_INT_HEX = 0x11
TYPE_INT_BOOLEAN = 0x12

TYPE_FIRST_COLOR_INT = 0x1C
TYPE_INT_COLOR_ARGB8 = 0x1C
TYPE_INT_COLOR_RGB8 = 0x1D
TYPE_INT_COLOR_ARGB4 = 0x1E
TYPE_INT_COLOR_RGB4 = 0x1F
TYPE_LAST_COLOR_INT = 0x1F

TYPE_LAST_INT = 0x1F

# Complex values (TYPE_DIMENSION and TYPE_FRACTION)
COMPLEX_UNIT_SHIFT = 0
COMPLEX_UNIT_MASK = 0x0F
COMPLEX_RADIX_SHIFT = 4
COMPLEX_RADIX_MASK = 0x03
COMPLEX_MANTISSA_SHIFT = 8
COMPLEX_MANTISSA_MASK = 0x00FFFFFF

# The string pool index / namespace "not set" value
NO_ENTRY = 0xFFFFFFFF
