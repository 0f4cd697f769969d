"""
Framework attribute resource IDs, as found in `android.R.attr`.

Only the attributes which are commonly found in AndroidManifest.xml files
are listed. The table is used to recover attribute names which were
stripped or renamed in the string pool; values are never resolved.
"""

ANDROID_NAMESPACE = "http://schemas.android.com/apk/res/android"

# Package id of the framework resources (the 0x01 in 0x01010003)
SYSTEM_PACKAGE_ID = 0x01

_ATTRIBUTES = {
    "theme": 0x01010000,
    "label": 0x01010001,
    "icon": 0x01010002,
    "name": 0x01010003,
    "manageSpaceActivity": 0x01010004,
    "allowClearUserData": 0x01010005,
    "permission": 0x01010006,
    "readPermission": 0x01010007,
    "writePermission": 0x01010008,
    "protectionLevel": 0x01010009,
    "permissionGroup": 0x0101000a,
    "sharedUserId": 0x0101000b,
    "hasCode": 0x0101000c,
    "persistent": 0x0101000d,
    "enabled": 0x0101000e,
    "debuggable": 0x0101000f,
    "exported": 0x01010010,
    "process": 0x01010011,
    "taskAffinity": 0x01010012,
    "multiprocess": 0x01010013,
    "finishOnTaskLaunch": 0x01010014,
    "clearTaskOnLaunch": 0x01010015,
    "stateNotNeeded": 0x01010016,
    "excludeFromRecents": 0x01010017,
    "authorities": 0x01010018,
    "syncable": 0x01010019,
    "initOrder": 0x0101001a,
    "grantUriPermissions": 0x0101001b,
    "priority": 0x0101001c,
    "launchMode": 0x0101001d,
    "screenOrientation": 0x0101001e,
    "configChanges": 0x0101001f,
    "description": 0x01010020,
    "targetPackage": 0x01010021,
    "handleProfiling": 0x01010022,
    "functionalTest": 0x01010023,
    "value": 0x01010024,
    "resource": 0x01010025,
    "mimeType": 0x01010026,
    "scheme": 0x01010027,
    "host": 0x01010028,
    "port": 0x01010029,
    "path": 0x0101002a,
    "pathPrefix": 0x0101002b,
    "pathPattern": 0x0101002c,
    "action": 0x0101002d,
    "data": 0x0101002e,
    "targetClass": 0x0101002f,
    "windowAnimationStyle": 0x010100ae,
    "targetActivity": 0x01010202,
    "alwaysRetainTaskState": 0x01010203,
    "allowTaskReparenting": 0x01010204,
    "minSdkVersion": 0x0101020c,
    "keepScreenOn": 0x01010216,
    "versionCode": 0x0101021b,
    "versionName": 0x0101021c,
    "windowSoftInputMode": 0x0101022b,
    "noHistory": 0x0101022d,
    "anyDensity": 0x0101026c,
    "targetSdkVersion": 0x01010270,
    "maxSdkVersion": 0x01010271,
    "testOnly": 0x01010272,
    "allowBackup": 0x01010280,
    "glEsVersion": 0x01010281,
    "smallScreens": 0x01010284,
    "normalScreens": 0x01010285,
    "largeScreens": 0x01010286,
    "required": 0x0101028e,
    "installLocation": 0x010102b7,
    "vmSafeMode": 0x010102b8,
    "xlargeScreens": 0x010102bf,
    "hardwareAccelerated": 0x010102d3,
    "largeHeap": 0x0101035a,
    "stopWithTask": 0x0101036a,
    "isolatedProcess": 0x010103a9,
    "supportsRtl": 0x010103af,
    "resizeableActivity": 0x010104f6,
    "extractNativeLibs": 0x010104ea,
    "fullBackupContent": 0x010104eb,
    "usesCleartextTraffic": 0x010104ec,
    "networkSecurityConfig": 0x01010527,
    "roundIcon": 0x0101052c,
    "compileSdkVersion": 0x01010572,
    "compileSdkVersionCodename": 0x01010573,
    "appComponentFactory": 0x0101057a,
}

SYSTEM_RESOURCES = {
    "attributes": {
        "forward": dict(_ATTRIBUTES),
        "inverse": {v: k for k, v in _ATTRIBUTES.items()},
    },
}


def is_system_resource(res_id: int) -> bool:
    """Return True if the resource ID belongs to the android framework package"""
    return res_id >> 24 == SYSTEM_PACKAGE_ID
